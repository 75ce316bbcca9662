"""API Routers for The Blacklist."""

from . import admin, cache_admin, lists, stats, system

__all__ = [
    "admin",
    "cache_admin",
    "lists",
    "stats",
    "system",
]
