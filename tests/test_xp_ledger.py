from __future__ import annotations

import random
from datetime import timedelta

from progression_bot.domain.config import ProgramConfig, XpAwards
from progression_bot.domain.models import SessionType, XpSource
from progression_bot.domain.schedule import generate_block
from progression_bot.domain.xp import build_ledger, summarize, total_xp
from tests.factories import PROGRAM_START, ResultRecordFactory, at_noon


def _results_for(sessions, *, draft: bool = False):
    return {
        s.id: ResultRecordFactory(
            athlete_id=s.athlete_id,
            session_id=s.id,
            session_type=s.session_type,
            completed_at=None if draft else at_noon(s.release_date),
        )
        for s in sessions
    }


def _sessions(generated, *weeks: int):
    return [s for s in generated.workable_sessions if s.week_number in weeks]


def _ledger(generated, results, config=None):
    return build_ledger(
        "ath-1", [generated.block], generated.sessions, results, config or ProgramConfig()
    )


def test_single_training_session_earns_session_xp_only() -> None:
    generated = generate_block("ath-1", 1, PROGRAM_START, ProgramConfig())
    first = _sessions(generated, 1)[:1]

    entries = _ledger(generated, _results_for(first))

    assert [(e.source, e.amount) for e in entries] == [(XpSource.SESSION_COMPLETE, 4)]
    assert total_xp(entries) == 4


def test_full_week_adds_exactly_one_week_award() -> None:
    generated = generate_block("ath-1", 1, PROGRAM_START, ProgramConfig())

    entries = _ledger(generated, _results_for(_sessions(generated, 1)))

    week_awards = [e for e in entries if e.source is XpSource.WEEK_COMPLETE]
    assert len(week_awards) == 1
    assert week_awards[0].reference == "ath-1:b1:w1"
    assert week_awards[0].awarded_at == at_noon(PROGRAM_START + timedelta(days=1))
    assert total_xp(entries) == 4 + 4 + 3


def test_testing_week_earns_testing_bonus() -> None:
    generated = generate_block("ath-1", 1, PROGRAM_START, ProgramConfig())
    testing = _sessions(generated, 5)
    assert [s.session_type for s in testing] == [SessionType.TESTING]

    entries = _ledger(generated, _results_for(testing))

    assert {e.source: e.amount for e in entries} == {
        XpSource.SESSION_COMPLETE: 8,
        XpSource.WEEK_COMPLETE: 3,
        XpSource.TESTING_BONUS: 5,
    }


def test_full_period_earns_period_award() -> None:
    generated = generate_block("ath-1", 1, PROGRAM_START, ProgramConfig())

    entries = _ledger(generated, _results_for(_sessions(generated, 1, 2, 3, 4)))

    periods = [e for e in entries if e.source is XpSource.PERIOD_COMPLETE]
    assert [p.reference for p in periods] == ["ath-1:b1:p1"]
    assert total_xp(entries) == 8 * 4 + 4 * 3 + 12


def test_period_with_rest_week_needs_only_workable_sessions() -> None:
    generated = generate_block("ath-1", 1, PROGRAM_START, ProgramConfig())

    entries = _ledger(generated, _results_for(_sessions(generated, 5, 6, 7, 8)))

    assert any(
        e.source is XpSource.PERIOD_COMPLETE and e.reference == "ath-1:b1:p2"
        for e in entries
    )


def test_drafts_earn_nothing() -> None:
    generated = generate_block("ath-1", 1, PROGRAM_START, ProgramConfig())

    entries = _ledger(generated, _results_for(_sessions(generated, 1), draft=True))

    assert entries == []


def test_recompute_is_idempotent_and_order_independent() -> None:
    generated = generate_block("ath-1", 1, PROGRAM_START, ProgramConfig())
    results = _results_for(_sessions(generated, 1, 2, 3, 4, 5))
    shuffled = list(generated.sessions)
    random.Random(7).shuffle(shuffled)

    first = _ledger(generated, results)
    second = _ledger(generated, results)
    third = build_ledger("ath-1", [generated.block], shuffled, results, ProgramConfig())

    assert first == second == third
    keys = [(e.source, e.reference) for e in first]
    assert len(keys) == len(set(keys))


def test_zero_awards_are_skipped() -> None:
    config = ProgramConfig(awards=XpAwards(week_complete=0))
    generated = generate_block("ath-1", 1, PROGRAM_START, config)

    entries = _ledger(generated, _results_for(_sessions(generated, 1)), config)

    assert all(e.amount > 0 for e in entries)
    assert not any(e.source is XpSource.WEEK_COMPLETE for e in entries)


def test_full_block_earns_consistency_bonus_when_configured() -> None:
    config = ProgramConfig(awards=XpAwards(consistency_bonus=20))
    generated = generate_block("ath-1", 1, PROGRAM_START, config)

    entries = _ledger(generated, _results_for(generated.workable_sessions), config)

    bonus = [e for e in entries if e.source is XpSource.CONSISTENCY_BONUS]
    assert [(b.reference, b.amount) for b in bonus] == [("ath-1:b1", 20)]
    assert len([e for e in entries if e.source is XpSource.PERIOD_COMPLETE]) == 3


def test_summary_groups_by_source() -> None:
    config = ProgramConfig()
    generated = generate_block("ath-1", 1, PROGRAM_START, config)
    entries = _ledger(generated, _results_for(_sessions(generated, 1, 2)))

    summary = summarize(entries, config, recent=3)

    assert summary.total_xp == 4 * 4 + 2 * 3
    assert summary.by_source[XpSource.SESSION_COMPLETE] == 16
    assert summary.by_source[XpSource.WEEK_COMPLETE] == 6
    assert len(summary.recent) == 3
    assert summary.recent[0].awarded_at >= summary.recent[-1].awarded_at
    assert summary.progress.level == 6
