"""
Authentication module for The Blacklist.

Admin endpoints share a single token checked by the ``require_admin``
FastAPI dependency.
"""

from .dependencies import ADMIN_TOKEN_HEADER, require_admin

__all__ = [
    "ADMIN_TOKEN_HEADER",
    "require_admin",
]
