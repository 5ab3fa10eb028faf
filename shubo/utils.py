"""Shared request-parsing helpers."""

from datetime import date


def parse_iso_date(value, default: date = None) -> date:
    """Parse ``YYYY-MM-DD``; blank returns *default*, anything else raises ValueError."""
    if value is None or str(value).strip() == "":
        return default
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise ValueError(f"Invalid date: {value}")


def optional_float(value, name: str):
    """Float or None for blank input; raises ValueError naming *name* otherwise."""
    if value is None or str(value).strip() == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number")
