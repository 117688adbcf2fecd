from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Union

ErrorCode = Union[int, str]
ErrorKind = Literal["http", "network", "validation", "unknown"]
Severity = Literal["critical", "error", "warning"]

_CRITICAL_CODES = frozenset({401, 403, "ENOTFOUND"})


@dataclass(frozen=True)
class ClassifiedError:
    code: ErrorCode
    raw_message: str
    retryable: bool
    user_message: str
    kind: ErrorKind = "unknown"
    suggested_action: Optional[str] = None
    actionable: bool = False

    @property
    def severity(self) -> Severity:
        if self.code in _CRITICAL_CODES:
            return "critical"
        if not self.retryable:
            return "error"
        return "warning"

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "kind": self.kind,
            "retryable": self.retryable,
            "user_message": self.user_message,
            "suggested_action": self.suggested_action,
            "actionable": self.actionable,
            "severity": self.severity,
        }


class ResilienceError(Exception):
    """Base error of the generation-call layer."""
    code: str = "RESILIENCE_ERROR"
    retryable: bool = False

    def __init__(self, message: str, *, code: str | None = None, retryable: bool | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code
        if retryable is not None:
            self.retryable = retryable


class RateLimitExceededError(ResilienceError):
    code = "RATE_LIMIT_EXCEEDED"
    retryable = True

    def __init__(self, message: str, *, resource: str, wait_time_s: float):
        super().__init__(message)
        self.resource = resource
        self.wait_time_s = wait_time_s


class GenerationFailedError(ResilienceError):
    """Terminal failure; str(exc) is the user-facing message, never the raw diagnostic."""
    code = "GENERATION_FAILED"

    def __init__(self, error: ClassifiedError, *, attempts: int):
        super().__init__(error.user_message, retryable=error.retryable)
        self.error = error
        self.attempts = attempts


class OperationCancelledError(ResilienceError):
    code = "CANCELLED"

    def __init__(self, message: str = "Operation cancelled", *, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class UnknownResourceError(ResilienceError, KeyError):
    code = "UNKNOWN_RESOURCE"

    def __init__(self, resource: str):
        super().__init__(f"Unknown rate-limited resource: {resource!r}")
        self.resource = resource

    def __str__(self) -> str:
        return self.args[0]


class PlanValidationError(Exception):
    """Raised by plan checks with a domain symbol such as ``OVERLAPPING_LOTS``."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message
