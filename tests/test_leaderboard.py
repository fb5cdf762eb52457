from __future__ import annotations

from handlers.leaderboard import build_leaderboard_lines
from progression_bot.domain.leaderboard import (
    ConsistencyStanding,
    LeaderboardKind,
    StrengthStanding,
    competition_ranks,
    rank_consistency,
    rank_strength,
)


def test_ties_share_rank_and_skip_next() -> None:
    rows = rank_strength(
        [
            StrengthStanding("c", "C", level=2, xp=9),
            StrengthStanding("a", "A", level=3, xp=12),
            StrengthStanding("b", "B", level=3, xp=12),
        ]
    )

    assert [(row.athlete_id, row.rank) for row in rows] == [
        ("a", 1),
        ("b", 1),
        ("c", 3),
    ]


def test_xp_breaks_level_ties() -> None:
    rows = rank_strength(
        [
            StrengthStanding("a", "A", level=4, xp=11),
            StrengthStanding("b", "B", level=4, xp=14),
        ]
    )

    assert [row.athlete_id for row in rows] == ["b", "a"]
    assert [row.rank for row in rows] == [1, 2]


def test_consistency_ranks_by_score_then_sessions() -> None:
    rows = rank_consistency(
        [
            ConsistencyStanding("a", "A", consistency=80.0, completed=8),
            ConsistencyStanding("b", "B", consistency=80.0, completed=12),
            ConsistencyStanding("c", "C", consistency=95.5, completed=4),
            ConsistencyStanding("d", "D", consistency=80.0, completed=12),
        ]
    )

    assert [(row.athlete_id, row.rank) for row in rows] == [
        ("c", 1),
        ("b", 2),
        ("d", 2),
        ("a", 4),
    ]


def test_limit_appends_requester_with_true_rank() -> None:
    standings = [
        StrengthStanding(f"ath-{i}", f"Athlete {i}", level=10 - i, xp=100 - i)
        for i in range(6)
    ]

    rows = rank_strength(standings, requester_id="ath-5", limit=3)

    assert [row.athlete_id for row in rows] == ["ath-0", "ath-1", "ath-2", "ath-5"]
    assert rows[-1].rank == 6
    assert rows[-1].is_you
    assert not any(row.is_you for row in rows[:-1])


def test_limit_does_not_duplicate_visible_requester() -> None:
    standings = [
        StrengthStanding(f"ath-{i}", f"Athlete {i}", level=5, xp=50 - i)
        for i in range(5)
    ]

    rows = rank_strength(standings, requester_id="ath-1", limit=2)

    assert [row.athlete_id for row in rows] == ["ath-0", "ath-1"]


def test_empty_board() -> None:
    assert rank_strength([]) == []
    assert rank_consistency([], requester_id="x", limit=5) == []


def test_competition_ranks_helper() -> None:
    ranked = competition_ranks([9, 7, 7, 7, 2], key=lambda value: value)

    assert [rank for rank, _ in ranked] == [1, 2, 2, 2, 5]


def test_leaderboard_lines_mark_requester() -> None:
    rows = rank_consistency(
        [
            ConsistencyStanding("a", "Ann", consistency=100.0, completed=10),
            ConsistencyStanding("b", "Bob", consistency=50.0, completed=5),
        ],
        requester_id="b",
    )

    lines = build_leaderboard_lines(rows, LeaderboardKind.CONSISTENCY)

    assert lines[0].startswith("📅")
    assert lines[1] == "1. Ann - 100.00% · 10 sessions"
    assert lines[2] == "2. Bob (you) - 50.00% · 5 sessions"
