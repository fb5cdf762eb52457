"""Testing-metric progression across blocks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Optional

from .completion import TESTING_FIELDS, ResultSchema, get_schema
from .models import ResultRecord, Session, SessionType

__all__ = ["BASELINE_LABEL", "MetricProgress", "ProgressPoint", "track_progress"]

BASELINE_LABEL = "BASELINE TESTING"


@dataclass(slots=True, frozen=True)
class ProgressPoint:
    label: str
    day: date
    value: float


@dataclass(slots=True, frozen=True)
class MetricProgress:
    """Ordered measurements of one testing metric."""

    metric: str
    points: tuple[ProgressPoint, ...]

    @property
    def change_percentage(self) -> Optional[float]:
        """Relative change from the first to the last point, one decimal."""

        if len(self.points) < 2:
            return None
        first = self.points[0].value
        if first <= 0:
            return None
        last = self.points[-1].value
        return round((last - first) / first * 100, 1)


def _label(session: Session, baseline_id: Optional[str]) -> str:
    if session.id == baseline_id:
        return BASELINE_LABEL
    return f"BLOCK {session.block_number} - WEEK {session.week_number}"


def _as_number(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def track_progress(
    sessions: Iterable[Session],
    results: Mapping[str, ResultRecord],
    schemas: Mapping[str, ResultSchema] | None = None,
) -> list[MetricProgress]:
    """Collect submitted testing values per metric in schedule order.

    Drafts are skipped, non-numeric values are ignored and metrics without a
    single measurement are left out.
    """

    testing = sorted(
        (s for s in sessions if s.session_type is SessionType.TESTING),
        key=lambda s: (s.block_number, s.week_number, s.session_number),
    )
    baseline = next((s.id for s in testing if s.block_number == 1), None)

    points: dict[str, list[ProgressPoint]] = {name: [] for name in TESTING_FIELDS}
    for session in testing:
        record = results.get(session.id)
        if record is None or record.completed_at is None:
            continue
        logical = get_schema(record.schema_version, schemas).to_logical(
            SessionType.TESTING, record.values
        )
        label = _label(session, baseline)
        day = record.completed_at.date()
        for name in TESTING_FIELDS:
            value = _as_number(logical.get(name))
            if value is not None:
                points[name].append(ProgressPoint(label=label, day=day, value=value))

    return [
        MetricProgress(metric=name, points=tuple(values))
        for name, values in points.items()
        if values
    ]
