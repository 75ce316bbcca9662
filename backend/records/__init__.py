"""Record model, derived views, chart shapes and fallback dataset for The Blacklist."""

__all__ = [
    "models",
    "derivations",
    "fallback",
    "charts",
]
