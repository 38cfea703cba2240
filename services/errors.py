"""Error taxonomy and typed results for service operations."""

from dataclasses import dataclass
from enum import Enum


class ValidationError(ValueError):
    """Malformed input: self-like, bad coordinates, out-of-range pagination."""


class UpstreamDeliveryFailure(Exception):
    """A webhook attempt failed. Handled inside the dispatcher, never surfaced to callers."""

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.status_code = status_code


class FailureReason(str, Enum):
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class Failure:
    """Expected, non-exceptional outcome returned instead of a value."""

    reason: FailureReason
    message: str

    @classmethod
    def not_found(cls, message: str) -> "Failure":
        return cls(FailureReason.NOT_FOUND, message)

    @classmethod
    def forbidden(cls, message: str) -> "Failure":
        return cls(FailureReason.FORBIDDEN, message)

    @classmethod
    def conflict(cls, message: str) -> "Failure":
        return cls(FailureReason.CONFLICT, message)

