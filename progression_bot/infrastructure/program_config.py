"""Loading of :class:`ProgramConfig` from the environment.

The canonical defaults live on the dataclasses. ``PROGRAM_CONFIG_PATH`` may
point at a JSON document overriding any of them, for example::

    {
        "block_duration_weeks": 14,
        "awards": {"training_session": 1},
        "layouts": {"14": {"testing_weeks": [6, 13], "rest_weeks": [7, 14]}}
    }

``BLOCK_DURATION_WEEKS`` wins over the file for the default duration and
``LOCK_TIMEOUT_SECONDS`` for the per-athlete lock wait.
"""

from __future__ import annotations

import dataclasses
import json
import os
from pathlib import Path
from typing import Any, Mapping

from progression_bot.domain.config import ProgramConfig, WeekLayout, XpAwards

__all__ = ["config_from_mapping", "load_program_config"]

_SCALAR_KEYS = {
    "block_duration_weeks",
    "second_session_offset_days",
    "rest_placeholders",
    "period_weeks",
    "consistency_precision",
    "result_schema_version",
    "lock_timeout",
}


def _layouts_from(raw: Mapping[str, Any]) -> dict[int, WeekLayout]:
    layouts: dict[int, WeekLayout] = {}
    for duration, layout in raw.items():
        layouts[int(duration)] = WeekLayout(
            testing_weeks=frozenset(int(w) for w in layout.get("testing_weeks", ())),
            rest_weeks=frozenset(int(w) for w in layout.get("rest_weeks", ())),
        )
    return layouts


def config_from_mapping(
    data: Mapping[str, Any], base: ProgramConfig | None = None
) -> ProgramConfig:
    """Apply overrides from ``data`` on top of ``base``.

    Raises:
        ValueError: On unknown keys or values rejected by ``ProgramConfig``.
    """

    config = base or ProgramConfig()
    known = _SCALAR_KEYS | {"awards", "layouts", "level_thresholds"}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"unknown program config keys: {', '.join(unknown)}")

    changes: dict[str, Any] = {key: data[key] for key in _SCALAR_KEYS if key in data}
    if "awards" in data:
        award_fields = {f.name for f in dataclasses.fields(XpAwards)}
        bad = sorted(set(data["awards"]) - award_fields)
        if bad:
            raise ValueError(f"unknown award keys: {', '.join(bad)}")
        changes["awards"] = dataclasses.replace(
            config.awards, **{k: int(v) for k, v in data["awards"].items()}
        )
    if "layouts" in data:
        merged = dict(config.layouts)
        merged.update(_layouts_from(data["layouts"]))
        changes["layouts"] = merged
    if "level_thresholds" in data:
        changes["level_thresholds"] = tuple(int(v) for v in data["level_thresholds"])

    updated = config.replace(**changes)
    updated.layout_for(updated.block_duration_weeks)
    return updated


def load_program_config(environ: Mapping[str, str] | None = None) -> ProgramConfig:
    """Build the program configuration once at startup."""

    data = os.environ if environ is None else environ
    config = ProgramConfig()

    path_raw = (data.get("PROGRAM_CONFIG_PATH") or "").strip()
    if path_raw:
        payload = json.loads(Path(path_raw).read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError("program config file must contain a JSON object")
        config = config_from_mapping(payload, config)

    duration_raw = (data.get("BLOCK_DURATION_WEEKS") or "").strip()
    if duration_raw:
        try:
            duration = int(duration_raw)
        except ValueError as exc:
            raise ValueError(
                f"BLOCK_DURATION_WEEKS must be an integer, got {duration_raw!r}"
            ) from exc
        config = config_from_mapping({"block_duration_weeks": duration}, config)

    timeout_raw = (data.get("LOCK_TIMEOUT_SECONDS") or "").strip()
    if timeout_raw:
        try:
            timeout = float(timeout_raw)
        except ValueError as exc:
            raise ValueError(
                f"LOCK_TIMEOUT_SECONDS must be a number, got {timeout_raw!r}"
            ) from exc
        config = config_from_mapping({"lock_timeout": timeout}, config)

    return config
