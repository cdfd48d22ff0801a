import os
from datetime import datetime, timezone
from typing import Any

__all__ = [
    "aware_utcnow",
    "clamp",
    "parse_bool",
    "is_blank"
]


def aware_utcnow() -> datetime:
    return datetime.now(timezone.utc)


def clamp(value: int, min_value: int, max_value: int) -> int:
    return max(min_value, min(value, max_value))


def parse_bool(env_var: str, default: bool = False) -> bool:
    value = os.getenv(env_var)

    if value is None:
        return default

    return value.lower() in ("true", "1", "yes")


def is_blank(value: Any) -> bool:
    """Return True for None and for strings holding only whitespace."""
    if value is None:
        return True

    return isinstance(value, str) and value.strip() == ""
