"""Error taxonomy for the booking core.

Every failure carries a kind (how the caller should react), a code (what
happened) and a list of human-readable messages, so several validation or
promo failures can be reported together.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    POLICY = "policy"
    INTERNAL = "internal_error"


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "ValidationError"
    NOT_FOUND = "NotFound"
    SLOT_UNAVAILABLE = "SlotUnavailable"
    INSUFFICIENT_CAPACITY = "InsufficientCapacity"
    DEADLINE_PASSED = "DeadlinePassed"
    OVER_RELEASE = "OverRelease"
    PROMO_INVALID = "PromoInvalid"
    PROMO_EXHAUSTED = "PromoExhausted"
    STORAGE_CONFLICT = "StorageConflict"
    ALREADY_CANCELLED = "AlreadyCancelled"
    ALREADY_COMPLETED = "AlreadyCompleted"
    INTERNAL_ERROR = "InternalError"


class BookingError(Exception):
    """Base error with kind, code and user-safe messages."""

    kind: ErrorKind = ErrorKind.INTERNAL
    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, messages: str | list[str], **context: Any) -> None:
        self.messages = [messages] if isinstance(messages, str) else list(messages)
        self.context = context
        super().__init__("; ".join(self.messages))

    def __str__(self) -> str:
        return f"{self.code.value}: {'; '.join(self.messages)}"

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "code": self.code.value, "messages": self.messages}


class ValidationError(BookingError):
    kind = ErrorKind.VALIDATION
    code = ErrorCode.VALIDATION_ERROR


class NotFoundError(BookingError):
    kind = ErrorKind.NOT_FOUND
    code = ErrorCode.NOT_FOUND


class SlotUnavailableError(BookingError):
    kind = ErrorKind.POLICY
    code = ErrorCode.SLOT_UNAVAILABLE


class InsufficientCapacityError(BookingError):
    kind = ErrorKind.CONFLICT
    code = ErrorCode.INSUFFICIENT_CAPACITY


class DeadlinePassedError(BookingError):
    kind = ErrorKind.POLICY
    code = ErrorCode.DEADLINE_PASSED


class OverReleaseError(BookingError):
    kind = ErrorKind.CONFLICT
    code = ErrorCode.OVER_RELEASE


class PromoInvalidError(BookingError):
    kind = ErrorKind.POLICY
    code = ErrorCode.PROMO_INVALID


class PromoExhaustedError(BookingError):
    """Usage cap reached between validation and redemption."""

    kind = ErrorKind.CONFLICT
    code = ErrorCode.PROMO_EXHAUSTED


class StorageConflictError(BookingError):
    """Concurrent write conflict that outlasted the local retries."""

    kind = ErrorKind.CONFLICT
    code = ErrorCode.STORAGE_CONFLICT


class AlreadyCancelledError(BookingError):
    kind = ErrorKind.POLICY
    code = ErrorCode.ALREADY_CANCELLED


class AlreadyCompletedError(BookingError):
    kind = ErrorKind.POLICY
    code = ErrorCode.ALREADY_COMPLETED


class InternalError(BookingError):
    kind = ErrorKind.INTERNAL
    code = ErrorCode.INTERNAL_ERROR
