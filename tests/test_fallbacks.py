import tempfile
import unittest
from pathlib import Path

import ai_fakes  # noqa: F401

from app.core.config.fallbacks import get_fallback_config, load_fallback_config
from app.resilience.fallbacks import FallbackProvider, FallbackUnavailableError
from app.schemas.ai import (
    AssessmentQuestionSet,
    InterviewEvaluation,
    InterviewQuestionSet,
    ResumeAnalysis,
)


class FallbackProviderTests(unittest.TestCase):
    def setUp(self):
        self.provider = FallbackProvider()

    def test_supported_operations(self):
        self.assertEqual(
            self.provider.supported_operations(),
            [
                "assessment_generation",
                "interview_evaluation",
                "interview_generation",
                "resume_analysis",
            ],
        )
        self.assertEqual(self.provider.version, 1)

    def test_payloads_match_live_response_shapes(self):
        cases = [
            ("resume_analysis", {}, ResumeAnalysis),
            ("assessment_generation", {"domain": "hr", "question_count": 6}, AssessmentQuestionSet),
            ("interview_generation", {"role": "data-scientist"}, InterviewQuestionSet),
            (
                "interview_evaluation",
                {"questions_and_answers": [{"question": "Why us?", "answer": "Growth."}]},
                InterviewEvaluation,
            ),
        ]
        for operation, params, model in cases:
            with self.subTest(operation=operation):
                payload = self.provider.get_fallback(operation, params)
                model.model_validate(payload)

    def test_same_params_give_same_payload(self):
        params = {"role": "software-developer", "question_count": 4}
        first = self.provider.get_fallback("interview_generation", params)
        second = self.provider.get_fallback("interview_generation", params)
        self.assertEqual(first, second)

    def test_payloads_are_copies(self):
        first = self.provider.get_fallback("resume_analysis")
        first["identified_skills"].append("Mutated")
        second = self.provider.get_fallback("resume_analysis")
        self.assertNotIn("Mutated", second["identified_skills"])

    def test_resume_analysis_is_marked_and_personalized(self):
        payload = self.provider.get_fallback(
            "resume_analysis",
            {"user_profile": {"interests": ["data science", "cloud"]}},
        )
        self.assertTrue(payload["fallback_used"])
        self.assertEqual(payload["overall_score"], 65)
        self.assertTrue(payload["recommendations"].startswith("Based on your interests in data science, cloud"))

    def test_question_count_is_clamped(self):
        cases = [
            ("assessment_generation", 2, 5),
            ("assessment_generation", 7, 7),
            ("assessment_generation", 50, 10),
            ("assessment_generation", "many", 5),
            ("interview_generation", 1, 3),
            ("interview_generation", 20, 8),
            ("interview_generation", None, 3),
        ]
        for operation, requested, expected in cases:
            with self.subTest(operation=operation, requested=requested):
                payload = self.provider.get_fallback(operation, {"question_count": requested})
                self.assertEqual(len(payload["questions"]), expected)
                self.assertEqual(payload["metadata"]["total_questions"], expected)
                self.assertTrue(payload["metadata"]["fallback_used"])

    def test_assessment_metadata(self):
        payload = self.provider.get_fallback(
            "assessment_generation",
            {"domain": "personality", "difficulty": "hard", "question_count": 6},
        )
        metadata = payload["metadata"]
        self.assertEqual(metadata["domain"], "personality")
        self.assertEqual(metadata["difficulty"], "hard")
        self.assertEqual(metadata["estimated_time"], "12 minutes")
        self.assertIn("pressure", payload["questions"][0]["question"])

    def test_unknown_domain_uses_default_pool(self):
        payload = self.provider.get_fallback("assessment_generation", {"domain": "astrology"})
        default = self.provider.get_fallback("assessment_generation", {"domain": "technical"})
        self.assertEqual(payload["questions"], default["questions"])

    def test_unknown_role_uses_default_pool(self):
        payload = self.provider.get_fallback("interview_generation", {"role": "astronaut"})
        self.assertEqual(payload["metadata"]["role"], "astronaut")
        self.assertEqual(
            payload["questions"][0]["question"],
            "Tell me about a challenging project you worked on.",
        )
        self.assertEqual(payload["metadata"]["estimated_duration"], "9 minutes")

    def test_evaluation_scores_every_answer(self):
        answers = [{"question": f"Q{i}", "answer": "A"} for i in range(4)]
        payload = self.provider.get_fallback("interview_evaluation", {"questions_and_answers": answers})

        self.assertEqual(payload["overall_score"], 70)
        self.assertEqual([s["question_index"] for s in payload["individual_scores"]], [0, 1, 2, 3])
        self.assertEqual(
            payload["competency_assessment"],
            {"technical": 70, "communication": 80, "problem_solving": 65, "leadership": 60},
        )

    def test_operations_without_fallback(self):
        for operation in ("content_generation", "does_not_exist"):
            with self.subTest(operation=operation):
                self.assertFalse(self.provider.has_fallback(operation))
                with self.assertRaises(FallbackUnavailableError):
                    self.provider.get_fallback(operation)

    def test_payload_building_leaves_logging_to_the_caller(self):
        with self.assertNoLogs("app.resilience.fallbacks", level="DEBUG"):
            self.provider.get_fallback("resume_analysis")

    def test_incomplete_operation_entry_is_rejected_up_front(self):
        cases = [
            ({"assessment_generation": {"domains": {}}}, "default_domain"),
            ({"resume_analysis": {"identified_skills": []}}, "recommendations"),
            ({"interview_evaluation": "not a mapping"}, "must be a mapping"),
        ]
        for operations, fragment in cases:
            with self.subTest(fragment=fragment):
                with self.assertRaises(RuntimeError) as ctx:
                    FallbackProvider({"version": 1, "operations": operations})
                self.assertIn(fragment, str(ctx.exception))

    def test_default_question_pool_must_exist(self):
        interview = dict(get_fallback_config()["operations"]["interview_generation"])
        interview["default_role"] = "astronaut"
        with self.assertRaises(RuntimeError) as ctx:
            FallbackProvider({"version": 1, "operations": {"interview_generation": interview}})
        self.assertIn("astronaut", str(ctx.exception))

    def test_custom_payloads(self):
        provider = FallbackProvider({"version": 1, "operations": {}})
        self.assertEqual(provider.supported_operations(), [])
        with self.assertRaises(FallbackUnavailableError):
            provider.get_fallback("resume_analysis")


class FallbackConfigTests(unittest.TestCase):
    def _write(self, text: str) -> Path:
        handle = tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False, encoding="utf-8")
        with handle:
            handle.write(text)
        path = Path(handle.name)
        self.addCleanup(path.unlink)
        return path

    def test_repo_config_loads(self):
        config = get_fallback_config()
        self.assertEqual(config["version"], 1)
        self.assertIn("resume_analysis", config["operations"])

    def test_missing_file(self):
        with self.assertRaises(RuntimeError):
            load_fallback_config(Path(tempfile.gettempdir()) / "no-such-fallbacks.yaml")

    def test_unsupported_version(self):
        path = self._write("version: 2\noperations: {}\n")
        with self.assertRaises(RuntimeError) as ctx:
            load_fallback_config(path)
        self.assertIn("Unsupported fallback config version", str(ctx.exception))

    def test_operations_must_be_mapping(self):
        path = self._write("version: 1\noperations: [a, b]\n")
        with self.assertRaises(RuntimeError):
            load_fallback_config(path)

    def test_operation_missing_required_key(self):
        path = self._write(
            "version: 1\n"
            "operations:\n"
            "  assessment_generation:\n"
            "    min_questions: 5\n"
            "    max_questions: 10\n"
            "    minutes_per_question: 2\n"
            "    domains: {}\n"
        )
        with self.assertRaises(RuntimeError) as ctx:
            load_fallback_config(path)
        self.assertIn("missing required keys: default_domain", str(ctx.exception))

    def test_invalid_yaml(self):
        path = self._write("version: [1\n")
        with self.assertRaises(RuntimeError):
            load_fallback_config(path)


if __name__ == "__main__":
    unittest.main()
