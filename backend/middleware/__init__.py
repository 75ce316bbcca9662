"""
Middleware package for The Blacklist backend.

Includes:
- ErrorHandlerMiddleware: JSON / HTMX error responses for unhandled exceptions
"""

from middleware.error_handler import (
    ErrorHandlerMiddleware,
    add_error_handlers,
    error_response,
)

__all__ = [
    "ErrorHandlerMiddleware",
    "add_error_handlers",
    "error_response",
]
