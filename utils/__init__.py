"""Shared utilities for the progression bot."""

from __future__ import annotations

from datetime import date, datetime

__all__ = ["fmt_date", "fmt_percent"]


def fmt_date(value: date | datetime) -> str:
    """Format a date the way chat messages show it, e.g. ``06.01.2025``."""

    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%d.%m.%Y")


def fmt_percent(value: float) -> str:
    """Format a 0..1 ratio as a whole-number percentage."""

    return f"{round(value * 100):d}%"
