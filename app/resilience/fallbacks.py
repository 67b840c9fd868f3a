from __future__ import annotations

import copy
from typing import Any, Callable, Mapping, Optional

from app.core.config.fallbacks import get_fallback_config, validate_fallback_operations


class FallbackUnavailableError(LookupError):
    def __init__(self, operation_name: str):
        super().__init__(f"No fallback available for operation: {operation_name}")
        self.operation_name = operation_name


def _clamp(value: Any, low: int, high: int, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(low, min(high, number))


def _cycle(items: list[dict[str, Any]], count: int) -> list[dict[str, Any]]:
    return [copy.deepcopy(items[i % len(items)]) for i in range(count)]


class FallbackProvider:
    """Deterministic canned payloads, one per operation, with no network access."""

    def __init__(self, payloads: Optional[Mapping[str, Any]] = None):
        config = payloads if payloads is not None else get_fallback_config()
        validate_fallback_operations(config.get("operations", {}))
        self._version = config.get("version")
        self._operations: Mapping[str, Any] = config.get("operations", {})
        self._builders: dict[str, Callable[[Mapping[str, Any], Mapping[str, Any]], dict[str, Any]]] = {
            "resume_analysis": self._resume_analysis,
            "assessment_generation": self._assessment_generation,
            "interview_generation": self._interview_generation,
            "interview_evaluation": self._interview_evaluation,
        }

    @property
    def version(self) -> Any:
        return self._version

    def has_fallback(self, operation_name: str) -> bool:
        return operation_name in self._builders and operation_name in self._operations

    def supported_operations(self) -> list[str]:
        return sorted(name for name in self._builders if name in self._operations)

    def get_fallback(self, operation_name: str, params: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
        if not self.has_fallback(operation_name):
            raise FallbackUnavailableError(operation_name)
        return self._builders[operation_name](self._operations[operation_name], params or {})

    def _resume_analysis(self, payload: Mapping[str, Any], params: Mapping[str, Any]) -> dict[str, Any]:
        analysis = copy.deepcopy(dict(payload))
        profile = params.get("user_profile") or {}
        interests = [str(item) for item in (profile.get("interests") or []) if str(item).strip()]
        if interests:
            analysis["recommendations"] = (
                f"Based on your interests in {', '.join(interests)}, {analysis['recommendations']}"
            )
        analysis["fallback_used"] = True
        return analysis

    def _assessment_generation(self, payload: Mapping[str, Any], params: Mapping[str, Any]) -> dict[str, Any]:
        domains = payload["domains"]
        requested = params.get("domain") or payload["default_domain"]
        pool = domains.get(requested) or domains[payload["default_domain"]]
        low, high = int(payload["min_questions"]), int(payload["max_questions"])
        count = _clamp(params.get("question_count"), low, high, low)
        difficulty = params.get("difficulty") or "medium"
        return {
            "questions": _cycle(pool, count),
            "metadata": {
                "domain": requested,
                "difficulty": difficulty,
                "total_questions": count,
                "estimated_time": f"{count * int(payload['minutes_per_question'])} minutes",
                "fallback_used": True,
            },
        }

    def _interview_generation(self, payload: Mapping[str, Any], params: Mapping[str, Any]) -> dict[str, Any]:
        roles = payload["roles"]
        role = params.get("role") or payload["default_role"]
        pool = roles.get(role) or roles[payload["default_role"]]
        low, high = int(payload["min_questions"]), int(payload["max_questions"])
        count = _clamp(params.get("question_count"), low, high, low)
        return {
            "questions": _cycle(pool, count),
            "metadata": {
                "role": role,
                "experience": params.get("experience") or "entry",
                "total_questions": count,
                "estimated_duration": f"{count * int(payload['minutes_per_question'])} minutes",
                "focus_areas": list(payload["focus_areas"]),
                "fallback_used": True,
            },
        }

    def _interview_evaluation(self, payload: Mapping[str, Any], params: Mapping[str, Any]) -> dict[str, Any]:
        base = int(payload["base_score"])
        answers = params.get("questions_and_answers") or []
        feedback = payload["answer_feedback"]
        return {
            "overall_score": base,
            "individual_scores": [
                {
                    "question_index": index,
                    "score": base,
                    "feedback": feedback["feedback"],
                    "strengths": list(feedback["strengths"]),
                    "improvements": list(feedback["improvements"]),
                }
                for index in range(len(answers))
            ],
            "summary": copy.deepcopy(dict(payload["summary"])),
            "competency_assessment": {
                name: max(0, min(100, base + int(offset)))
                for name, offset in payload["competency_offsets"].items()
            },
            "fallback_used": True,
        }
