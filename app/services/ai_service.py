from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable

from pydantic import BaseModel

from app.ai.prompts import (
    build_assessment_prompt,
    build_content_prompt,
    build_interview_evaluation_prompt,
    build_interview_questions_prompt,
    build_resume_analysis_prompt,
)
from app.resilience.models import OperationRequest
from app.resilience.orchestrator import OperationOrchestrator
from app.schemas.ai import (
    AssessmentQuestionSet,
    GeneratedContent,
    InterviewEvaluation,
    InterviewQuestionSet,
    ResumeAnalysis,
    UserProfile,
)
from app.schemas.resilience import OperationResult

logger = logging.getLogger(__name__)

RESUME_ANALYSIS = "resume_analysis"
CONTENT_GENERATION = "content_generation"
INTERVIEW_GENERATION = "interview_generation"
INTERVIEW_EVALUATION = "interview_evaluation"
ASSESSMENT_GENERATION = "assessment_generation"

OPERATION_NAMES = (
    RESUME_ANALYSIS,
    CONTENT_GENERATION,
    INTERVIEW_GENERATION,
    INTERVIEW_EVALUATION,
    ASSESSMENT_GENERATION,
)

DEFAULT_TARGET_ROLE = "Software Engineer"

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the first JSON object in model output, tolerating markdown fences."""
    cleaned = _FENCE_RE.sub("", (text or "").strip())
    match = _OBJECT_RE.search(cleaned)
    if not match:
        raise ValueError("No JSON object found in AI response")
    parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict):
        raise ValueError("AI response JSON is not an object")
    return parsed


def _model_parser(model: type[BaseModel], enrich: Callable[[dict[str, Any]], dict[str, Any]] | None = None):
    def parse(text: str) -> dict[str, Any]:
        payload = extract_json_object(text)
        if enrich is not None:
            payload = enrich(payload)
        payload["fallback_used"] = False
        return model.model_validate(payload).model_dump()

    return parse


def _normalize_priority(payload: dict[str, Any]) -> dict[str, Any]:
    for step in payload.get("learning_path") or []:
        if isinstance(step, dict) and isinstance(step.get("priority"), str):
            step["priority"] = step["priority"].strip().lower()
    gaps = payload.get("skill_gaps") or []
    payload["skill_gaps"] = [gap.get("name", "") if isinstance(gap, dict) else gap for gap in gaps]
    score = payload.get("overall_score")
    if isinstance(score, (int, float)):
        payload["overall_score"] = max(0, min(100, int(round(score))))
    return payload


async def analyze_resume(
    orchestrator: OperationOrchestrator,
    *,
    resume_text: str,
    user_profile: UserProfile | None = None,
) -> OperationResult:
    profile = user_profile or UserProfile()
    target_role = (profile.target_role or "").strip() or DEFAULT_TARGET_ROLE
    system_prompt, prompt = build_resume_analysis_prompt(resume_text, target_role)
    logger.info("resume_analysis_requested resume_len=%s target_role=%s", len(resume_text), target_role)
    return await orchestrator.run(
        OperationRequest(
            operation_name=RESUME_ANALYSIS,
            prompt=prompt,
            system_prompt=system_prompt,
            use_cache=True,
        ),
        {"resume_text": resume_text, "user_profile": profile.model_dump()},
        parser=_model_parser(ResumeAnalysis, _normalize_priority),
    )


async def generate_content(orchestrator: OperationOrchestrator, *, prompt: str) -> OperationResult:
    system_prompt, user_prompt = build_content_prompt(prompt)

    def parse(text: str) -> dict[str, Any]:
        return GeneratedContent(content=text).model_dump()

    return await orchestrator.run(
        OperationRequest(
            operation_name=CONTENT_GENERATION,
            prompt=user_prompt,
            system_prompt=system_prompt,
            use_cache=True,
        ),
        {"prompt": prompt},
        parser=parse,
    )


async def generate_interview_questions(
    orchestrator: OperationOrchestrator,
    *,
    role: str,
    experience: str = "entry",
    question_count: int = 5,
) -> OperationResult:
    system_prompt, prompt = build_interview_questions_prompt(role, experience, question_count)

    def enrich(payload: dict[str, Any]) -> dict[str, Any]:
        questions = list(payload.get("questions") or [])[:question_count]
        return {
            "questions": questions,
            "metadata": {
                "role": role,
                "experience": experience,
                "total_questions": len(questions),
                "estimated_duration": f"{len(questions) * 3} minutes",
                "focus_areas": sorted({q.get("category", "") for q in questions if isinstance(q, dict)} - {""}),
                "fallback_used": False,
            },
        }

    def parse(text: str) -> dict[str, Any]:
        return InterviewQuestionSet.model_validate(enrich(extract_json_object(text))).model_dump()

    return await orchestrator.run(
        OperationRequest(
            operation_name=INTERVIEW_GENERATION,
            prompt=prompt,
            system_prompt=system_prompt,
            use_cache=True,
        ),
        {"role": role, "experience": experience, "question_count": question_count},
        parser=parse,
    )


async def evaluate_interview(
    orchestrator: OperationOrchestrator,
    *,
    role: str,
    questions_and_answers: list[dict[str, str]],
    experience: str = "entry",
) -> OperationResult:
    system_prompt, prompt = build_interview_evaluation_prompt(role, experience, questions_and_answers)
    # Answers are unique per session, so evaluation is never cached.
    return await orchestrator.run(
        OperationRequest(
            operation_name=INTERVIEW_EVALUATION,
            prompt=prompt,
            system_prompt=system_prompt,
            use_cache=False,
        ),
        {"role": role, "experience": experience, "questions_and_answers": questions_and_answers},
        parser=_model_parser(InterviewEvaluation),
    )


async def generate_assessment(
    orchestrator: OperationOrchestrator,
    *,
    domain: str = "technical",
    difficulty: str = "medium",
    question_count: int = 5,
) -> OperationResult:
    system_prompt, prompt = build_assessment_prompt(domain, difficulty, question_count)

    def parse(text: str) -> dict[str, Any]:
        payload = extract_json_object(text)
        questions = list(payload.get("questions") or [])[:question_count]
        return AssessmentQuestionSet.model_validate(
            {
                "questions": questions,
                "metadata": {
                    "domain": domain,
                    "difficulty": difficulty,
                    "total_questions": len(questions),
                    "estimated_time": f"{len(questions) * 2} minutes",
                    "fallback_used": False,
                },
            }
        ).model_dump()

    return await orchestrator.run(
        OperationRequest(
            operation_name=ASSESSMENT_GENERATION,
            prompt=prompt,
            system_prompt=system_prompt,
            use_cache=True,
        ),
        {"domain": domain, "difficulty": difficulty, "question_count": question_count},
        parser=parse,
    )
