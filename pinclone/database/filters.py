"""Helpers for building PostgREST filter values from user input."""

import re

_LIKE_SPECIAL = re.compile(r"([\\%_])")
# Characters that would break out of an ``or=(...)`` filter expression
_OR_RESERVED = re.compile(r"[,()*\"]")


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so ``ilike`` performs a case-insensitive exact match."""
    return _LIKE_SPECIAL.sub(r"\\\1", value)


def contains_pattern(value: str) -> str:
    """Build a ``%term%`` pattern safe to embed in an ``or_`` filter string."""
    term = _OR_RESERVED.sub(" ", value.strip())
    return f"%{escape_like(term)}%"


def page_range(page: int, limit: int) -> tuple:
    """Inclusive row range for a 1-based page of ``limit`` rows."""
    start = (page - 1) * limit
    return start, start + limit - 1
