"""Metadata constants for the progression bot."""

from __future__ import annotations

from typing import Final

BOT_VERSION: Final[str] = "0.1.0"
"""Current bot version used for telemetry and observability tags."""
