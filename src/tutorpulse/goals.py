# ABOUTME: Summarizes student goals into achievement and overdue counts.
# ABOUTME: Computes per-goal urgency bands from days remaining to the target date.

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .dates import Moment, days_between, parse_day, resolve_now
from .schemas import GOAL_STATUSES, Goal


@dataclass(frozen=True)
class GoalSummary:
    total: int
    active: int
    achieved: int
    abandoned: int
    overdue: int
    achievement_rate: float


@dataclass(frozen=True)
class GoalUrgency:
    days_left: int
    label: str
    level: str


def goal_achievement_rate(goals: Sequence[Goal]) -> float:
    if not goals:
        return 0.0
    achieved = sum(1 for g in goals if g.status == "achieved")
    return achieved / len(goals) * 100


def is_overdue(goal: Goal, now: Optional[Moment] = None) -> bool:
    return _is_overdue(goal, resolve_now(now))


def _is_overdue(goal: Goal, now_ts: pd.Timestamp) -> bool:
    if goal.status != "active":
        return False
    target = parse_day(goal.target_date)
    return target is not None and target < now_ts


def summarize_goals(goals: Iterable[Goal], now: Optional[Moment] = None) -> GoalSummary:
    goals = list(goals)
    now_ts = resolve_now(now)
    return GoalSummary(
        total=len(goals),
        active=sum(1 for g in goals if g.status == "active"),
        achieved=sum(1 for g in goals if g.status == "achieved"),
        abandoned=sum(1 for g in goals if g.status == "abandoned"),
        overdue=sum(1 for g in goals if _is_overdue(g, now_ts)),
        achievement_rate=goal_achievement_rate(goals),
    )


def goal_urgency(
    goal: Goal,
    now: Optional[Moment] = None,
    config: Optional[AnalyticsConfig] = None,
) -> Optional[GoalUrgency]:
    """Days left until an active goal's target, bucketed into urgency levels."""

    config = config or DEFAULT_CONFIG
    if goal.status != "active":
        return None
    target = parse_day(goal.target_date)
    if target is None:
        return None

    days = days_between(target, resolve_now(now))
    if days < 0:
        return GoalUrgency(days_left=days, label=f"{abs(days)}d overdue", level="overdue")
    if days <= config.urgent_goal_days:
        level = "urgent"
    elif days <= config.upcoming_goal_days:
        level = "upcoming"
    else:
        level = "on_track"
    return GoalUrgency(days_left=days, label=f"{days}d left", level=level)


def goals_by_status(goals: Iterable[Goal]) -> Dict[str, List[Goal]]:
    buckets: Dict[str, List[Goal]] = {status: [] for status in GOAL_STATUSES}
    for goal in goals:
        buckets.setdefault(goal.status, []).append(goal)
    return buckets
