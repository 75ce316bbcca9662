"""
The Blacklist Exception Hierarchy
Provides structured error handling across the application
"""
from typing import Optional, Dict, Any


class BlacklistException(Exception):
    """
    Base exception for all Blacklist backend errors.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses"""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details
            }
        }


# ============================================================================
# Backing Store Exceptions
# ============================================================================

class BackingStoreError(BlacklistException):
    """Base exception for backing store failures"""

    status_code = 503

    def __init__(
        self,
        message: str,
        code: str = "BACKING_STORE_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, code, details)


class QuotaExhaustedError(BackingStoreError):
    """Raised when the backing store reports read quota exhaustion"""

    def __init__(self, message: str = "Quota exceeded: RESOURCE_EXHAUSTED"):
        super().__init__(message=message, code="RESOURCE_EXHAUSTED")


class StoreNotConfiguredError(BackingStoreError):
    """Raised when no backing store credentials are available"""

    def __init__(self, message: str = "Backing store is not configured"):
        super().__init__(message=message, code="STORE_NOT_CONFIGURED")


# ============================================================================
# Item / View Exceptions
# ============================================================================

class ItemNotFoundError(BlacklistException):
    """Raised when an item does not exist"""

    status_code = 404

    def __init__(self, item_id: str):
        super().__init__(
            message=f"Item not found: {item_id}",
            code="ITEM_NOT_FOUND",
            details={"item_id": item_id}
        )


class InvalidUpdateError(BlacklistException):
    """Raised when an item update carries no usable fields"""

    status_code = 400

    def __init__(self, message: str = "No valid fields to update"):
        super().__init__(message=message, code="INVALID_UPDATE")


class UnknownViewError(BlacklistException):
    """Raised when a derived view kind is not supported"""

    status_code = 400

    def __init__(self, view_kind: str):
        super().__init__(
            message=f"Unknown view: {view_kind}",
            code="UNKNOWN_VIEW",
            details={"view_kind": view_kind}
        )


class UnknownStatusError(BlacklistException):
    """Raised when a status name is outside the known set"""

    status_code = 404

    def __init__(self, status: str):
        super().__init__(
            message=f"Unknown status: {status}",
            code="UNKNOWN_STATUS",
            details={"status": status}
        )


# ============================================================================
# Fallback Dataset Exceptions
# ============================================================================

class FallbackDatasetError(BlacklistException):
    """Raised when the fallback dataset cannot be (re)loaded"""

    status_code = 500

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        problems: Optional[list] = None
    ):
        super().__init__(
            message=message,
            code="FALLBACK_DATASET_ERROR",
            details={"source": source, "problems": problems or []}
        )
