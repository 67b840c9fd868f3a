"""Error taxonomy and classification for calls to the inference backend.

Errors raised where the category is already known carry it on a
``ClassifiedError``. Anything else crossing the backend boundary is mapped
by ``classify`` using exception type, HTTP status and, as a last resort,
keywords in the message. Unmatched errors are ``unknown`` and never retried.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    SAFETY_BLOCKED = "safety_blocked"
    AUTH_FAILED = "auth_failed"
    NETWORK = "network"
    INVALID_INPUT = "invalid_input"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


RETRYABLE_CATEGORIES = frozenset(
    {
        ErrorCategory.TIMEOUT,
        ErrorCategory.NETWORK,
        ErrorCategory.SERVER_ERROR,
        ErrorCategory.RATE_LIMITED,
        ErrorCategory.QUOTA_EXCEEDED,
    }
)


@dataclass(frozen=True)
class Classification:
    retryable: bool
    category: ErrorCategory


class ClassifiedError(Exception):
    def __init__(
        self,
        message: str,
        category: ErrorCategory,
        *,
        retryable: bool | None = None,
        attempts: int = 0,
    ):
        super().__init__(message)
        self.category = category
        self.retryable = category in RETRYABLE_CATEGORIES if retryable is None else retryable
        self.attempts = attempts

    @classmethod
    def from_exception(cls, error: BaseException) -> "ClassifiedError":
        if isinstance(error, ClassifiedError):
            return error
        verdict = classify(error)
        message = str(error).strip() or type(error).__name__
        classified = cls(message, verdict.category, retryable=verdict.retryable)
        classified.__cause__ = error
        return classified


# A bare number only counts as an HTTP status at the start of the message or
# right after "status", "status code", "error code" or "HTTP".
_STATUS_PREFIX = r"(?:^|status(?: code)?:?\s*|error code:?\s*|http(?:/[\d.]+)?\s+)"


def _status(codes: str) -> str:
    return rf"{_STATUS_PREFIX}(?:{codes})\b"


# First match wins: permanent signals are checked before transient ones.
_KEYWORD_RULES: tuple[tuple[ErrorCategory, re.Pattern[str]], ...] = (
    (
        ErrorCategory.SAFETY_BLOCKED,
        re.compile(r"safety|content blocked|content[_ ]filter|content[_ ]policy|blocked by policy"),
    ),
    (
        ErrorCategory.AUTH_FAILED,
        re.compile(
            r"authentication|unauthori[sz]ed|permission denied|forbidden|invalid api key"
            r"|api key (?:is )?missing|credentials|" + _status("401|403")
        ),
    ),
    (
        ErrorCategory.INVALID_INPUT,
        re.compile(
            r"invalid (?:input|prompt|argument|request)|bad request|malformed"
            r"|unprocessable|" + _status("400|422")
        ),
    ),
    (
        ErrorCategory.TIMEOUT,
        re.compile(r"timeout|timed out|deadline exceeded|" + _status("408")),
    ),
    (
        ErrorCategory.NETWORK,
        re.compile(r"network|connection|connect|econnreset|econnrefused|dns|socket"),
    ),
    (
        ErrorCategory.SERVER_ERROR,
        re.compile(
            r"service unavailable|internal error|internal server error|temporar|overloaded"
            r"|bad gateway|" + _status("50[0-4]")
        ),
    ),
    (
        ErrorCategory.QUOTA_EXCEEDED,
        re.compile(r"quota|insufficient_quota|resource exhausted|resource_exhausted"),
    ),
    (
        ErrorCategory.RATE_LIMITED,
        re.compile(r"rate limit|rate_limit|too many requests|" + _status("429")),
    ),
)


def _verdict(category: ErrorCategory) -> Classification:
    return Classification(retryable=category in RETRYABLE_CATEGORIES, category=category)


def _classify_status(status_code: int, message: str) -> ErrorCategory | None:
    if status_code in (401, 403):
        return ErrorCategory.AUTH_FAILED
    if status_code == 408:
        return ErrorCategory.TIMEOUT
    if status_code == 429:
        if "quota" in message:
            return ErrorCategory.QUOTA_EXCEEDED
        return ErrorCategory.RATE_LIMITED
    if status_code in (400, 422):
        if _KEYWORD_RULES[0][1].search(message):
            return ErrorCategory.SAFETY_BLOCKED
        return ErrorCategory.INVALID_INPUT
    if 500 <= status_code < 600:
        return ErrorCategory.SERVER_ERROR
    return None


def classify(error: BaseException) -> Classification:
    """Map a raised failure to a retry verdict. Pure and side-effect free."""
    if isinstance(error, ClassifiedError):
        return Classification(retryable=error.retryable, category=error.category)

    message = f"{type(error).__name__}: {error}".lower()

    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return _verdict(ErrorCategory.TIMEOUT)

    if isinstance(error, ConnectionError):
        return _verdict(ErrorCategory.NETWORK)

    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        category = _classify_status(status_code, message)
        if category is not None:
            return _verdict(category)

    text = str(error).lower()
    for category, pattern in _KEYWORD_RULES:
        if pattern.search(text):
            return _verdict(category)

    return _verdict(ErrorCategory.UNKNOWN)


@dataclass(frozen=True)
class UserMessage:
    message: str
    action: str
    retry_after_ms: int | None = None


USER_MESSAGES: dict[ErrorCategory, UserMessage] = {
    ErrorCategory.TIMEOUT: UserMessage(
        "AI processing is taking longer than expected. Please try again.",
        "retry",
    ),
    ErrorCategory.RATE_LIMITED: UserMessage(
        "Too many requests. Please wait a moment before trying again.",
        "wait_and_retry",
        retry_after_ms=60_000,
    ),
    ErrorCategory.QUOTA_EXCEEDED: UserMessage(
        "AI service is experiencing high demand. Please try again later.",
        "wait_and_retry",
        retry_after_ms=300_000,
    ),
    ErrorCategory.SAFETY_BLOCKED: UserMessage(
        "Content was flagged by safety filters. Please modify your input and try again.",
        "modify_input",
    ),
    ErrorCategory.AUTH_FAILED: UserMessage(
        "Authentication issue with AI service. Please contact support.",
        "contact_support",
    ),
    ErrorCategory.NETWORK: UserMessage(
        "Connection issue detected while reaching the AI service. Please try again.",
        "retry",
    ),
    ErrorCategory.INVALID_INPUT: UserMessage(
        "The provided input is not valid. Please check your content and try again.",
        "check_input",
    ),
    ErrorCategory.SERVER_ERROR: UserMessage(
        "The AI service encountered an internal error. Please try again.",
        "retry",
    ),
    ErrorCategory.UNKNOWN: UserMessage(
        "An unexpected error occurred. Please try again.",
        "retry",
    ),
}


def user_message_for(category: ErrorCategory) -> UserMessage:
    return USER_MESSAGES.get(category, USER_MESSAGES[ErrorCategory.UNKNOWN])
