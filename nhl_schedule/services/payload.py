# nhl_schedule/services/payload.py
"""
Helpers for picking values out of loosely-shaped provider payloads.
"""

from __future__ import annotations

from typing import Any


def safe_int(v, default=0) -> int:
    """Convert a value to int safely; return default on failures."""
    try:
        return int(v)
    except Exception:
        return default


def get_nested(obj: Any, path: list[str], default=None):
    """Safely access nested dict keys by path; return default if missing."""
    cur = obj
    for k in path:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(k)
    return cur if cur is not None else default


def localized(v: Any) -> str:
    """
    Return a plain string from either "Toronto" or {"default": "Toronto"}.
    """
    if isinstance(v, str):
        return v.strip()
    if isinstance(v, dict):
        val = v.get("default")
        if isinstance(val, str):
            return val.strip()
    return ""
