# ABOUTME: Tests goal achievement rates, overdue detection, and urgency bands.
# ABOUTME: Pins "now" to fixed dates for deterministic day counts.

from datetime import date

import pytest

from src.tutorpulse.goals import (
    goal_achievement_rate,
    goal_urgency,
    goals_by_status,
    is_overdue,
    summarize_goals,
)
from src.tutorpulse.schemas import Goal

NOW = date(2024, 6, 1)


def _goal(gid, status="active", target=None, student_id="s1"):
    return Goal(id=gid, student_id=student_id, title=f"Goal {gid}", target_date=target, status=status)


def test_past_active_goal_is_overdue():
    goals = [_goal("g1", target="2020-01-01")]

    summary = summarize_goals(goals, now=NOW)

    assert summary.overdue == 1
    assert summary.achievement_rate == 0
    assert summary.active == 1


def test_overdue_requires_active_status_and_target_date():
    assert not is_overdue(_goal("g1", status="achieved", target="2020-01-01"), now=NOW)
    assert not is_overdue(_goal("g2", target=None), now=NOW)
    assert not is_overdue(_goal("g3", target="2024-12-31"), now=NOW)
    assert is_overdue(_goal("g4", target="2024-05-31"), now=NOW)


def test_achievement_rate_and_status_counts():
    goals = [
        _goal("g1", status="achieved"),
        _goal("g2", status="achieved"),
        _goal("g3", status="abandoned"),
        _goal("g4", status="active"),
    ]

    summary = summarize_goals(goals, now=NOW)

    assert summary.total == 4
    assert summary.achieved == 2
    assert summary.abandoned == 1
    assert summary.active == 1
    assert summary.achievement_rate == 50


def test_no_goals_means_zero_rate():
    assert goal_achievement_rate([]) == 0
    summary = summarize_goals([], now=NOW)
    assert summary.total == 0
    assert summary.overdue == 0


@pytest.mark.parametrize(
    "target, label, level",
    [
        ("2024-05-29", "3d overdue", "overdue"),
        ("2024-06-01", "0d left", "urgent"),
        ("2024-06-08", "7d left", "urgent"),
        ("2024-06-09", "8d left", "upcoming"),
        ("2024-07-01", "30d left", "upcoming"),
        ("2024-07-02", "31d left", "on_track"),
    ],
)
def test_goal_urgency_bands(target, label, level):
    urgency = goal_urgency(_goal("g1", target=target), now=NOW)
    assert urgency.label == label
    assert urgency.level == level


def test_goal_urgency_skips_inactive_or_undated_goals():
    assert goal_urgency(_goal("g1", status="achieved", target="2024-06-05"), now=NOW) is None
    assert goal_urgency(_goal("g2", target=None), now=NOW) is None


def test_goals_by_status_always_has_known_buckets():
    buckets = goals_by_status([_goal("g1", status="achieved")])
    assert set(buckets) == {"active", "achieved", "abandoned"}
    assert [g.id for g in buckets["achieved"]] == ["g1"]
    assert buckets["active"] == []
