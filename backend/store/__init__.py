"""Backing store clients for The Blacklist records."""

from .base import RecordStore
from .errors import ErrorInfo, is_quota_exhaustion
from .memory_store import InMemoryRecordStore

__all__ = [
    "RecordStore",
    "ErrorInfo",
    "is_quota_exhaustion",
    "InMemoryRecordStore",
]
