"""Error taxonomy of the sync engine.

Two families live here:

  - SyncError and its subclasses: what a pass reports to its caller. Each
    carries a stable `code` that the HTTP layer puts in `{error, message}`.
  - ProviderError and its subclasses: what a provider adapter raises for a
    failed remote call. The reader and the applier turn them into
    SyncErrors or per-operation outcomes after bounded retries, so a raw
    provider error never reaches the caller.
"""

from typing import Optional, Sequence

from playsync.core.models import UnmatchedSong

# Per-operation failure codes recorded on OperationOutcome.error
TRANSIENT_FAILURE = "TransientFailure"
RATE_LIMIT_EXHAUSTED = "RateLimitExhausted"
REJECTED = "Rejected"
UNREMOVABLE = "Unremovable"


# --- Pass-level errors --------------------------------------------------------


class SyncError(Exception):
    code = "SyncError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class AuthError(SyncError):
    """The caller has no valid remote credential."""

    code = "AuthError"


class NotFoundLocal(SyncError):
    code = "NotFoundLocal"


class SyncInProgress(SyncError):
    """Another pass holds the playlist lock past this pass's deadline."""

    code = "SyncInProgress"


class TransientFetchError(SyncError):
    """Reading the remote playlist kept failing after bounded retries."""

    code = "TransientFetchError"


class SyncAborted(SyncError):
    """Policy abort: raised before any remote mutation is issued."""

    code = "SyncAborted"


class RemotePlaylistMissing(SyncAborted):
    code = "RemotePlaylistMissing"


class UpdateNotPermitted(SyncAborted):
    code = "UpdateNotPermitted"


class UnresolvedConflict(SyncAborted):
    code = "UnresolvedConflict"

    def __init__(self, unmatched: Sequence[UnmatchedSong]) -> None:
        self.unmatched = list(unmatched)
        ids = ", ".join(u.song_id for u in self.unmatched)
        super().__init__(f"{len(self.unmatched)} song(s) could not be matched: {ids}")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["unmatched"] = [
            {"song_id": u.song_id, "reason": u.reason} for u in self.unmatched
        ]
        return data


# --- Provider errors ------------------------------------------------------------


class ProviderError(Exception):
    def __init__(self, message: str = "", status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class ProviderAuthError(ProviderError):
    """401: the credential was rejected."""


class ProviderRateLimited(ProviderError):
    """429: `retry_after` is the provider hint in seconds, when given."""

    def __init__(
        self,
        message: str = "",
        status: Optional[int] = 429,
        retry_after: Optional[float] = None,
    ) -> None:
        super().__init__(message, status)
        self.retry_after = retry_after


class ProviderUnavailable(ProviderError):
    """5xx, connection error or timeout: retryable."""


class ProviderRejected(ProviderError):
    """4xx other than 401/404/429: not retryable."""


class ProviderNotFound(ProviderRejected):
    """404."""


# --- Internal control flow ------------------------------------------------------


class PassInterrupted(SyncError):
    """Cancellation signal or pass deadline hit between two remote calls."""

    code = "Cancelled"


class RetryExhausted(Exception):
    """A retryable remote call failed on every allowed attempt."""

    def __init__(self, code: str, attempts: int, last_error: Exception) -> None:
        super().__init__(f"{code} after {attempts} attempt(s): {last_error}")
        self.code = code
        self.attempts = attempts
        self.last_error = last_error
