from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

SUPPORTED_FALLBACK_VERSION = 1

REQUIRED_OPERATION_KEYS: dict[str, tuple[str, ...]] = {
    "resume_analysis": (
        "identified_skills",
        "skill_gaps",
        "learning_path",
        "overall_score",
        "recommendations",
    ),
    "assessment_generation": (
        "default_domain",
        "min_questions",
        "max_questions",
        "minutes_per_question",
        "domains",
    ),
    "interview_generation": (
        "default_role",
        "min_questions",
        "max_questions",
        "minutes_per_question",
        "focus_areas",
        "roles",
    ),
    "interview_evaluation": (
        "base_score",
        "answer_feedback",
        "summary",
        "competency_offsets",
    ),
}

# operation -> (question pool mapping key, default pool key)
_QUESTION_POOLS = {
    "assessment_generation": ("domains", "default_domain"),
    "interview_generation": ("roles", "default_role"),
}

_FALLBACK_CONFIG_CACHE: dict[str, Any] | None = None
_FALLBACK_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "fallbacks.yaml"


def load_fallback_config(path: Path | None = None) -> dict[str, Any]:
    """Read and validate a fallback payload file without touching the cache."""
    config_path = path or _FALLBACK_CONFIG_PATH
    if not config_path.exists():
        raise RuntimeError(
            f"Fallback config not found at '{config_path}'. "
            "Expected file: config/fallbacks.yaml"
        )

    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(
            f"Failed to read fallback config '{config_path}': {exc}"
        ) from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(
            f"Invalid YAML in fallback config '{config_path}': {exc}"
        ) from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(
            f"Invalid fallback config '{config_path}': expected a top-level mapping."
        )

    version = parsed.get("version")
    if version != SUPPORTED_FALLBACK_VERSION:
        raise RuntimeError(
            f"Unsupported fallback config version '{version}' in '{config_path}'; "
            f"expected {SUPPORTED_FALLBACK_VERSION}."
        )

    validate_fallback_operations(parsed.get("operations"), source=str(config_path))
    return parsed


def validate_fallback_operations(operations: Any, source: str = "fallback payloads") -> None:
    """Reject operation entries their payload builders could not use."""
    if not isinstance(operations, dict):
        raise RuntimeError(
            f"Invalid fallback config '{source}': 'operations' must be a mapping."
        )

    for name, required in REQUIRED_OPERATION_KEYS.items():
        if name not in operations:
            continue
        entry = operations[name]
        if not isinstance(entry, dict):
            raise RuntimeError(
                f"Invalid fallback config '{source}': operations.{name} must be a mapping."
            )
        missing = [key for key in required if key not in entry]
        if missing:
            raise RuntimeError(
                f"Invalid fallback config '{source}': operations.{name} is missing "
                f"required keys: {', '.join(missing)}."
            )

        pool_key, default_key = _QUESTION_POOLS.get(name, (None, None))
        if pool_key is None:
            continue
        pools = entry[pool_key]
        default = entry[default_key]
        if not isinstance(pools, dict) or not isinstance(pools.get(default), list) or not pools[default]:
            raise RuntimeError(
                f"Invalid fallback config '{source}': operations.{name}.{pool_key} "
                f"needs a non-empty question list for default '{default}'."
            )
        empty = [key for key, questions in pools.items() if not isinstance(questions, list) or not questions]
        if empty:
            raise RuntimeError(
                f"Invalid fallback config '{source}': operations.{name}.{pool_key} "
                f"has empty question lists: {', '.join(map(str, empty))}."
            )
        try:
            low, high = int(entry["min_questions"]), int(entry["max_questions"])
            int(entry["minutes_per_question"])
        except (TypeError, ValueError) as exc:
            raise RuntimeError(
                f"Invalid fallback config '{source}': operations.{name} question limits must be integers."
            ) from exc
        if low > high:
            raise RuntimeError(
                f"Invalid fallback config '{source}': operations.{name} has "
                "min_questions greater than max_questions."
            )

    evaluation = operations.get("interview_evaluation")
    if evaluation is not None:
        feedback = evaluation["answer_feedback"]
        missing = [key for key in ("feedback", "strengths", "improvements") if key not in (feedback or {})]
        if missing:
            raise RuntimeError(
                f"Invalid fallback config '{source}': operations.interview_evaluation.answer_feedback "
                f"is missing required keys: {', '.join(missing)}."
            )


def get_fallback_config() -> dict[str, Any]:
    """Load fallback payloads from repo-level config/fallbacks.yaml and cache them."""
    global _FALLBACK_CONFIG_CACHE

    if _FALLBACK_CONFIG_CACHE is None:
        _FALLBACK_CONFIG_CACHE = load_fallback_config()
    return _FALLBACK_CONFIG_CACHE
