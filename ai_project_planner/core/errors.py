"""
Error taxonomy and user-facing classification.

Every failure in the generation pipeline is raised as a PlannerError
subclass carrying an ErrorKind. classify() is the single mapping from
those causes to messages that are safe to show an end user.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence

MAX_DETAIL_LENGTH = 200


class ErrorKind(Enum):
    """Closed set of failure kinds surfaced to callers."""
    VALIDATION_ERROR = "validation_error"
    QUOTA_EXCEEDED = "quota_exceeded"
    UNCONFIGURED = "unconfigured"
    AUTH_ERROR = "auth_error"
    RATE_LIMITED = "rate_limited"
    SERVICE_UNAVAILABLE = "service_unavailable"
    MALFORMED_UPSTREAM_RESPONSE = "malformed_upstream_response"
    TRANSPORT_ERROR = "transport_error"
    RESPONSE_FORMAT_ERROR = "response_format_error"
    RESPONSE_VALIDATION_ERROR = "response_validation_error"
    QUOTA_RECORD_ERROR = "quota_record_error"
    UNKNOWN = "unknown"


MODEL_CLIENT_KINDS = frozenset({
    ErrorKind.UNCONFIGURED,
    ErrorKind.AUTH_ERROR,
    ErrorKind.RATE_LIMITED,
    ErrorKind.SERVICE_UNAVAILABLE,
    ErrorKind.MALFORMED_UPSTREAM_RESPONSE,
    ErrorKind.TRANSPORT_ERROR,
})


def truncate_detail(text: str, limit: int = MAX_DETAIL_LENGTH) -> str:
    """Shorten diagnostic text so provider payloads never travel far."""
    text = " ".join(str(text).split())
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class PlannerError(Exception):
    """Base class for classified pipeline failures."""
    kind = ErrorKind.UNKNOWN

    def __init__(self, message: str):
        super().__init__(message)


class InputValidationError(PlannerError):
    """Raised when generation input violates one or more rules."""
    kind = ErrorKind.VALIDATION_ERROR

    def __init__(self, violations: Sequence[str]):
        self.violations = list(violations)
        super().__init__("; ".join(self.violations))


class QuotaExceededError(PlannerError):
    """Raised when a user has used every generation in the window."""
    kind = ErrorKind.QUOTA_EXCEEDED

    def __init__(self, reset_time: Optional[datetime] = None):
        self.reset_time = reset_time
        super().__init__(f"Generation quota exceeded (resets {reset_time})")


class ModelClientError(PlannerError):
    """Raised by the model client with a classified transport kind."""

    def __init__(self, kind: ErrorKind, detail: str = ""):
        if kind not in MODEL_CLIENT_KINDS:
            raise ValueError(f"{kind} is not a model client error kind")
        self.kind = kind
        self.detail = truncate_detail(detail)
        message = kind.value if not self.detail else f"{kind.value}: {self.detail}"
        super().__init__(message)


class ResponseFormatError(PlannerError):
    """Raised when no JSON object can be recovered from the model reply."""
    kind = ErrorKind.RESPONSE_FORMAT_ERROR


class ResponseValidationError(PlannerError):
    """Raised when the recovered JSON breaks any project or task rule."""
    kind = ErrorKind.RESPONSE_VALIDATION_ERROR

    def __init__(self, reasons: Sequence[str]):
        self.reasons = list(reasons)
        super().__init__("; ".join(self.reasons))


class QuotaRecordError(PlannerError):
    """Raised when a generation event could not be durably recorded."""
    kind = ErrorKind.QUOTA_RECORD_ERROR


@dataclass(frozen=True)
class UserFacingError:
    """Error kind and message safe to present to an end user."""
    kind: ErrorKind
    message: str
    details: List[str] = field(default_factory=list)


INVALID_PLAN_MESSAGE = (
    "The generated plan was invalid. Please try again with a clearer "
    "project description."
)

MESSAGE_TEMPLATES = {
    ErrorKind.UNCONFIGURED: (
        "AI project generation is not configured. Please contact support."
    ),
    ErrorKind.AUTH_ERROR: (
        "AI project generation is not available right now because the AI "
        "service rejected our credentials. Please contact support."
    ),
    ErrorKind.RATE_LIMITED: (
        "The AI service is temporarily unavailable due to high demand. "
        "Please try again in a few minutes."
    ),
    ErrorKind.SERVICE_UNAVAILABLE: (
        "The AI service is experiencing problems. Please try again later."
    ),
    ErrorKind.MALFORMED_UPSTREAM_RESPONSE: (
        "The AI service returned an unexpected response. Please try again."
    ),
    ErrorKind.TRANSPORT_ERROR: (
        "We could not reach the AI service. Check your connection and try again."
    ),
    ErrorKind.RESPONSE_FORMAT_ERROR: INVALID_PLAN_MESSAGE,
    ErrorKind.RESPONSE_VALIDATION_ERROR: INVALID_PLAN_MESSAGE,
    ErrorKind.QUOTA_RECORD_ERROR: (
        "Your project was generated, but we could not update your usage "
        "count. Your remaining generations may be shown incorrectly."
    ),
    ErrorKind.UNKNOWN: (
        "Something went wrong while generating your project. Please try again."
    ),
}


def format_reset_time(reset_time: Optional[datetime]) -> str:
    """Human readable reset time, or a generic fallback."""
    if reset_time is None:
        return "in about a week"
    return "on " + reset_time.strftime("%b %d, %Y %H:%M UTC")


def classify(cause: BaseException) -> UserFacingError:
    """Map any failure cause to a user-facing error.

    Total over all exceptions: unrecognized causes fall back to UNKNOWN.
    Provider payloads and parser internals never reach the message.

    Args:
        cause: The exception raised by a pipeline stage

    Returns:
        UserFacingError with a fixed or templated message
    """
    if isinstance(cause, InputValidationError):
        return UserFacingError(
            kind=ErrorKind.VALIDATION_ERROR,
            message="Please fix the following: " + "; ".join(cause.violations),
            details=cause.violations
        )

    if isinstance(cause, QuotaExceededError):
        return UserFacingError(
            kind=ErrorKind.QUOTA_EXCEEDED,
            message=(
                "You have reached your weekly limit for AI project generation. "
                f"Your limit resets {format_reset_time(cause.reset_time)}."
            )
        )

    if isinstance(cause, PlannerError) and cause.kind in MESSAGE_TEMPLATES:
        return UserFacingError(kind=cause.kind, message=MESSAGE_TEMPLATES[cause.kind])

    return UserFacingError(kind=ErrorKind.UNKNOWN, message=MESSAGE_TEMPLATES[ErrorKind.UNKNOWN])
