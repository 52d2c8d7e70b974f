"""
Failure classification for the economy and trade APIs.

Every user-visible failure is one of a closed set of error kinds. Services
raise a KnownError subclass; the request boundary (see cardledger.main)
turns it into a FailureBody. Validation failures are raised before any
write is committed, so a failure never leaves storage partially mutated.

INVARIANT: No raw exception may reach the caller unclassified.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    """Classification of failures returned to callers."""

    # Identity
    PLAYER_NOT_FOUND = "PLAYER_NOT_FOUND"
    MISSING_IDENTITY = "MISSING_IDENTITY"

    # Sell validation
    NOTHING_TO_SELL = "NOTHING_TO_SELL"
    DAILY_LIMIT_REACHED = "DAILY_LIMIT_REACHED"
    NO_OWNERSHIP = "NO_OWNERSHIP"

    # Trade validation
    INVALID_STAGE = "INVALID_STAGE"
    NOT_PARTICIPANT = "NOT_PARTICIPANT"
    SELECTION_TOO_LARGE = "SELECTION_TOO_LARGE"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"

    # Input
    INVALID_REQUEST = "INVALID_REQUEST"

    # Storage
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    STORAGE_INCONSISTENT = "STORAGE_INCONSISTENT"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"

    # Unknown
    SERVER_ERROR = "SERVER_ERROR"


class FailureBody(BaseModel):
    """Structured failure returned to callers."""

    ok: bool = False
    error: ErrorKind = Field(
        ...,
        description="Classification of the failure",
    )
    message: str = Field(
        ...,
        description="User-appropriate explanation of what went wrong",
    )
    detail: dict[str, Any] | None = Field(
        default=None,
        description="Additional machine-readable detail (optional)",
    )


class KnownError(Exception):
    """
    Base class for exceptions that represent known, explainable failures.

    Subclass this for errors where the system knows exactly what went wrong.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        detail: dict[str, Any] | None = None,
        status_code: int = 400,
    ):
        self.kind = kind
        self.message = message
        self.detail = detail
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> FailureBody:
        """Convert to a FailureBody."""
        return FailureBody(error=self.kind, message=self.message, detail=self.detail)


class PlayerNotFoundError(KnownError):
    def __init__(self, player_id: str | None = None):
        super().__init__(
            kind=ErrorKind.PLAYER_NOT_FOUND,
            message="Player not found.",
            detail={"playerId": player_id} if player_id else None,
            status_code=404,
        )


class MissingIdentityError(KnownError):
    def __init__(self) -> None:
        super().__init__(
            kind=ErrorKind.MISSING_IDENTITY,
            message="A player id or player token is required.",
            status_code=401,
        )


class NothingToSellError(KnownError):
    def __init__(self) -> None:
        super().__init__(
            kind=ErrorKind.NOTHING_TO_SELL,
            message="No card quantities were requested.",
        )


class DailyLimitReachedError(KnownError):
    """
    Raised when a sell request exceeds what is left of today's quota.

    The whole request is rejected. No partial sell is attempted.
    """

    def __init__(self, allowed: int, requested: int, limit: int):
        self.allowed = allowed
        self.requested = requested
        super().__init__(
            kind=ErrorKind.DAILY_LIMIT_REACHED,
            message=f"Daily sell limit reached. You can sell {allowed} more card(s) today.",
            detail={"allowed": allowed, "requested": requested, "limit": limit},
        )


class NoOwnershipError(KnownError):
    def __init__(self, detail: dict[str, Any] | None = None):
        super().__init__(
            kind=ErrorKind.NO_OWNERSHIP,
            message="You do not own the requested cards.",
            detail=detail,
        )


class InvalidStageError(KnownError):
    """Raised when an action is not permitted in the session's current stage."""

    def __init__(self, stage: str, action: str):
        self.stage = stage
        self.action = action
        super().__init__(
            kind=ErrorKind.INVALID_STAGE,
            message=f"Action '{action}' is not allowed while the trade is in stage '{stage}'.",
            detail={"stage": stage, "action": action},
            status_code=409,
        )


class NotParticipantError(KnownError):
    def __init__(self, session_id: str):
        super().__init__(
            kind=ErrorKind.NOT_PARTICIPANT,
            message="You are not a participant in this trade.",
            detail={"sessionId": session_id},
            status_code=403,
        )


class SelectionTooLargeError(KnownError):
    def __init__(self, size: int, limit: int):
        super().__init__(
            kind=ErrorKind.SELECTION_TOO_LARGE,
            message=f"A trade selection may contain at most {limit} cards.",
            detail={"size": size, "limit": limit},
        )


class SessionNotFoundError(KnownError):
    def __init__(self, session_id: str):
        super().__init__(
            kind=ErrorKind.SESSION_NOT_FOUND,
            message="Trade session not found.",
            detail={"sessionId": session_id},
            status_code=404,
        )


class InvalidRequestError(KnownError):
    def __init__(self, message: str, detail: dict[str, Any] | None = None):
        super().__init__(kind=ErrorKind.INVALID_REQUEST, message=message, detail=detail)


class StorageUnavailableError(KnownError):
    """Raised when no storage provider could serve a read or write."""

    def __init__(self, detail: str | None = None):
        super().__init__(
            kind=ErrorKind.STORAGE_UNAVAILABLE,
            message="Storage is temporarily unavailable. Please retry.",
            detail={"reason": detail} if detail else None,
            status_code=503,
        )


class StorageInconsistentError(KnownError):
    """
    Raised when two providers hold different documents at the same version.

    Neither copy can be trusted over the other, so the read is refused.
    """

    def __init__(self, key: str, version: int):
        self.key = key
        self.version = version
        super().__init__(
            kind=ErrorKind.STORAGE_INCONSISTENT,
            message="Stored copies of this record disagree. Please contact support.",
            detail={"key": key, "version": version},
            status_code=503,
        )


class ConcurrentModificationError(KnownError):
    """
    Raised when a stored blob changed between read and commit.

    Nothing in the failed commit is applied. Callers may retry.
    """

    def __init__(self, key: str, expected: int, actual: int):
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            kind=ErrorKind.CONCURRENT_MODIFICATION,
            message="The record was modified by another request. Please retry.",
            detail={"key": key, "expectedVersion": expected, "actualVersion": actual},
            status_code=409,
        )


def server_error_body(exception: Exception) -> FailureBody:
    """
    Build the failure body for an unexpected exception.

    The message is fixed; only the exception type is exposed.
    """
    return FailureBody(
        error=ErrorKind.SERVER_ERROR,
        message="I failed and I don't know why. Try again later.",
        detail={"type": type(exception).__name__},
    )
