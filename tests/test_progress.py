from __future__ import annotations

import pytest

from progression_bot.domain.config import ProgramConfig
from progression_bot.domain.models import SessionType
from progression_bot.domain.progress import BASELINE_LABEL, track_progress
from progression_bot.domain.schedule import generate_block, next_block_start
from reports.charts import build_progress_chart
from tests.factories import PROGRAM_START, ResultRecordFactory, at_noon


def _testing_sessions():
    config = ProgramConfig()
    first = generate_block("ath-1", 1, PROGRAM_START, config)
    second = generate_block(
        "ath-1", 2, next_block_start([first.block]), config, existing=[first.block]
    )
    return [
        s
        for s in (*first.sessions, *second.sessions)
        if s.session_type is SessionType.TESTING
    ]


def _result(session, jump: float, *, draft: bool = False, **extra):
    record = ResultRecordFactory(
        athlete_id="ath-1",
        session_id=session.id,
        session_type=SessionType.TESTING,
        completed_at=None if draft else at_noon(session.release_date),
    )
    values = dict(record.values)
    values["standing_long_jump"] = jump
    values.update(extra)
    return ResultRecordFactory(
        athlete_id="ath-1",
        session_id=session.id,
        session_type=SessionType.TESTING,
        values=values,
        completed_at=record.completed_at,
    )


def test_progress_labels_and_change() -> None:
    sessions = _testing_sessions()
    results = {
        sessions[0].id: _result(sessions[0], 160.0),
        sessions[1].id: _result(sessions[1], 168.0),
        sessions[2].id: _result(sessions[2], 176.0),
    }

    metrics = {m.metric: m for m in track_progress(sessions, results)}

    jump = metrics["standing_long_jump"]
    assert [p.label for p in jump.points] == [
        BASELINE_LABEL,
        "BLOCK 1 - WEEK 10",
        "BLOCK 2 - WEEK 5",
    ]
    assert [p.value for p in jump.points] == [160.0, 168.0, 176.0]
    assert jump.change_percentage == 10.0
    assert "bent_arm_hang" not in metrics


def test_drafts_are_skipped() -> None:
    sessions = _testing_sessions()
    results = {
        sessions[0].id: _result(sessions[0], 160.0),
        sessions[1].id: _result(sessions[1], 190.0, draft=True),
    }

    metrics = {m.metric: m for m in track_progress(sessions, results)}

    assert [p.value for p in metrics["standing_long_jump"].points] == [160.0]
    assert metrics["standing_long_jump"].change_percentage is None


def test_optional_metric_is_tracked_when_recorded() -> None:
    sessions = _testing_sessions()
    results = {
        sessions[0].id: _result(
            sessions[0], 160.0, bent_arm_hang_assessment=12.5
        ),
    }

    metrics = {m.metric: m for m in track_progress(sessions, results)}

    assert metrics["bent_arm_hang"].points[0].value == 12.5


def test_no_results_no_metrics() -> None:
    assert track_progress(_testing_sessions(), {}) == []


def test_progress_chart_is_png() -> None:
    sessions = _testing_sessions()
    results = {
        sessions[0].id: _result(sessions[0], 160.0),
        sessions[1].id: _result(sessions[1], 171.0),
    }

    payload = build_progress_chart(track_progress(sessions, results))

    assert payload.startswith(b"\x89PNG")


def test_progress_chart_requires_metrics() -> None:
    with pytest.raises(ValueError):
        build_progress_chart([])
