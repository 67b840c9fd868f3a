import json
import os
import unittest

# Keep API tests deterministic: no background probe, no HTTP throttling.
os.environ.setdefault("AI_HEALTH_PROBE_ENABLED", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")

from ai_fakes import RecordingSleep, ScriptedClient  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.main import app  # noqa: E402
from app.resilience.config import ResilienceConfig  # noqa: E402
from app.resilience.runtime import build_orchestrator  # noqa: E402

RESUME_TEXT = (
    "Jane Doe. Backend engineer with five years of Python, FastAPI and PostgreSQL. "
    "Led a migration to containerized deployments and mentored two junior developers."
)


class AIApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        self.backend = ScriptedClient()
        app.state.orchestrator = build_orchestrator(
            self.backend,
            ResilienceConfig(max_retries=0, retry_max_jitter_ms=0, health_probe_enabled=False),
            sleep=RecordingSleep(),
        )

    def tearDown(self):
        app.state.orchestrator = None

    def test_resume_analysis_live(self):
        self.backend.queue(
            json.dumps(
                {
                    "identified_skills": ["Python", "FastAPI"],
                    "skill_gaps": ["Kubernetes"],
                    "learning_path": [],
                    "overall_score": 81,
                    "recommendations": "Add an observability project.",
                }
            )
        )
        response = self.client.post(
            "/v1/ai/resume-analysis",
            json={"resume_text": RESUME_TEXT, "user_profile": {"target_role": "Platform Engineer"}},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()

        self.assertTrue(body["success"])
        self.assertEqual(body["source"], "live")
        self.assertEqual(body["data"]["overall_score"], 81)
        self.assertIn("Platform Engineer", self.backend.calls[0][-1].content)

    def test_resume_analysis_fallback_on_outage(self):
        self.backend.default = ConnectionError("Connection refused")
        response = self.client.post(
            "/v1/ai/resume-analysis",
            json={"resume_text": RESUME_TEXT, "user_profile": {"interests": ["backend"]}},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()

        self.assertTrue(body["success"])
        self.assertEqual(body["source"], "fallback")
        self.assertTrue(body["data"]["fallback_used"])
        self.assertIn("backend", body["data"]["recommendations"])
        self.assertEqual(body["message"], "AI service temporarily unavailable. Using backup system.")

    def test_resume_analysis_validates_length(self):
        response = self.client.post("/v1/ai/resume-analysis", json={"resume_text": "too short"})
        self.assertEqual(response.status_code, 422)
        self.assertEqual(self.backend.calls, [])

    def test_content_safety_block_is_reported(self):
        self.backend.default = Exception("Content blocked due to safety filters")
        response = self.client.post("/v1/ai/content", json={"prompt": "Write something"})
        self.assertEqual(response.status_code, 200)
        body = response.json()

        self.assertFalse(body["success"])
        self.assertEqual(body["source"], "none")
        self.assertEqual(body["error"]["category"], "safety_blocked")
        self.assertEqual(body["error"]["action"], "modify_input")
        self.assertFalse(body["error"]["fallback_available"])

    def test_interview_questions_bounds(self):
        response = self.client.post("/v1/ai/interview-questions", json={"role": "Engineer", "question_count": 12})
        self.assertEqual(response.status_code, 422)

    def test_interview_questions_fallback(self):
        self.backend.default = Exception("429 Too Many Requests")
        response = self.client.post(
            "/v1/ai/interview-questions",
            json={"role": "software-developer", "question_count": 4},
        )
        body = response.json()
        self.assertEqual(body["source"], "fallback")
        self.assertEqual(body["data"]["metadata"]["total_questions"], 4)

    def test_interview_evaluation_fallback(self):
        self.backend.default = TimeoutError()
        response = self.client.post(
            "/v1/ai/interview-evaluation",
            json={
                "role": "Data Analyst",
                "questions_and_answers": [
                    {"question": "Describe a dashboard you built.", "answer": "A sales funnel view."},
                    {"question": "How do you clean data?", "answer": ""},
                ],
            },
        )
        body = response.json()
        self.assertEqual(body["source"], "fallback")
        self.assertEqual(len(body["data"]["individual_scores"]), 2)

    def test_assessment_domain_is_validated(self):
        response = self.client.post("/v1/ai/assessment", json={"domain": "astrology"})
        self.assertEqual(response.status_code, 422)

    def test_missing_orchestrator_is_503(self):
        app.state.orchestrator = None
        response = self.client.post("/v1/ai/content", json={"prompt": "hello"})
        self.assertEqual(response.status_code, 503)


if __name__ == "__main__":
    unittest.main()
