"""
Backing store error classification.

``is_quota_exhaustion`` is the single place that decides whether a failed
store call should be answered with fallback data.  Every await on the
backing store that can fall back goes through it.
"""

from dataclasses import dataclass
from typing import Optional, Union

from google.api_core import exceptions as google_exceptions

RESOURCE_EXHAUSTED_CODES = frozenset({"resource-exhausted", "RESOURCE_EXHAUSTED"})
GRPC_RESOURCE_EXHAUSTED = 8
QUOTA_MESSAGE_MARKERS = (
    "quota",
    "resource-exhausted",
    "resource_exhausted",
    "too many requests",
)


@dataclass(frozen=True)
class ErrorInfo:
    """Structured view of a store failure: code plus message."""
    code: Optional[Union[str, int]]
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorInfo":
        """
        Extract a code from known exception shapes.

        google-api-core errors expose a gRPC status (RESOURCE_EXHAUSTED == 8);
        our own BlacklistException subclasses carry a string ``code``.
        """
        if isinstance(exc, google_exceptions.ResourceExhausted):
            return cls(code="RESOURCE_EXHAUSTED", message=str(exc))

        grpc_status = getattr(exc, "grpc_status_code", None)
        if grpc_status is not None:
            value = getattr(grpc_status, "value", grpc_status)
            code = value[0] if isinstance(value, tuple) else value
            return cls(code=code, message=str(exc))

        return cls(code=getattr(exc, "code", None), message=str(exc))


def is_quota_exhaustion(error: Union[ErrorInfo, BaseException]) -> bool:
    """
    True if the error means the store's read quota is exhausted.

    Matches a resource-exhausted code, the numeric gRPC code 8, or a
    quota-related phrase in the message (case-insensitive).
    """
    info = error if isinstance(error, ErrorInfo) else ErrorInfo.from_exception(error)

    if isinstance(info.code, str) and info.code in RESOURCE_EXHAUSTED_CODES:
        return True
    # bool is an int subclass; True must not read as a code
    if isinstance(info.code, int) and not isinstance(info.code, bool):
        if info.code == GRPC_RESOURCE_EXHAUSTED:
            return True

    message = (info.message or "").lower()
    return any(marker in message for marker in QUOTA_MESSAGE_MARKERS)
