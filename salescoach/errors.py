"""
Engine Error Taxonomy

Typed failures surfaced to callers of the scoring and coaching services.
Pure analytics never raise these for empty input; only validation and the
storage boundary do.
"""
from typing import Optional


class EngineError(Exception):
    """Base class for all engine failures."""
    pass


class UnauthorizedError(EngineError):
    """Raised when a call has no owner identity to scope its queries."""
    pass


class NotFoundError(EngineError):
    """Raised when a referenced owner, account or signal does not exist."""
    pass


class ValidationError(EngineError):
    """Raised for malformed windows or out-of-range inputs, before computing."""
    pass


class DownstreamFailure(EngineError):
    """
    Storage collaborator error or timeout.

    Always tagged with the operation (metric or detector name) that
    triggered the read, so batch callers can report what degraded.
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.operation = operation
        self.cause = cause
        detail = message or (f"{type(cause).__name__}: {cause}" if cause else "storage unavailable")
        super().__init__(f"[{operation}] {detail}")

    def retag(self, operation: str) -> "DownstreamFailure":
        """Return a copy attributed to an outer operation, keeping the root cause."""
        return DownstreamFailure(
            operation,
            cause=self.cause,
            message=str(self).split("] ", 1)[-1],
        )


def require_owner(owner_id: Optional[str]) -> str:
    """Return the owner id, or raise UnauthorizedError when it is missing or blank."""
    if not owner_id or not owner_id.strip():
        raise UnauthorizedError("An owner id is required to scope this operation")
    return owner_id
