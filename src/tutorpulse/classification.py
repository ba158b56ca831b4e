# ABOUTME: Labels students by engagement x comprehension quadrant and retention risk.
# ABOUTME: Applies fixed thresholds to per-student session aggregates.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .dates import Moment, days_between, parse_day, resolve_now
from .records import records_to_frame
from .schemas import Session, Student, student_name, student_names

THRIVING = "Thriving"
TRYING_HARD = "Trying Hard"
NEEDS_CHALLENGE = "Needs Challenge"
AT_RISK = "At Risk"

SESSION_THRIVING = "Thriving"
SESSION_TRYING_HARD = "Trying Hard"
SESSION_BORED = "Bored/Easy"
SESSION_STRUGGLING = "Struggling"

RISK_HIGH = "High"
RISK_MEDIUM = "Medium"
RISK_LOW = "Low"


@dataclass(frozen=True)
class MatrixPoint:
    student_id: str
    name: str
    avg_engagement: float
    avg_comprehension: float
    session_count: int
    quadrant: str

    @property
    def x_pct(self) -> float:
        return (self.avg_engagement - 1) / 9 * 85 + 5

    @property
    def y_pct(self) -> float:
        return 95 - (self.avg_comprehension - 1) / 9 * 85


@dataclass(frozen=True)
class RetentionRisk:
    student_id: str
    name: str
    tier: str
    reasons: Tuple[str, ...]
    flags: Tuple[str, ...]


def quadrant_label(engagement: float, comprehension: float, midpoint: float = DEFAULT_CONFIG.quadrant_midpoint) -> str:
    """Place averaged scores into a quadrant; the boundary belongs to the upper side."""

    engaged = engagement >= midpoint
    understands = comprehension >= midpoint
    if engaged and understands:
        return THRIVING
    if engaged:
        return TRYING_HARD
    if understands:
        return NEEDS_CHALLENGE
    return AT_RISK


def session_quadrant(
    engagement: float,
    comprehension: float,
    midpoint: float = DEFAULT_CONFIG.session_quadrant_midpoint,
) -> str:
    """Label a single logged session, as shown beside each entry in the session log."""

    engaged = engagement >= midpoint
    understands = comprehension >= midpoint
    if engaged and understands:
        return SESSION_THRIVING
    if engaged:
        return SESSION_TRYING_HARD
    if understands:
        return SESSION_BORED
    return SESSION_STRUGGLING


def engagement_matrix(
    sessions: Sequence[Session],
    students: Iterable[Student] = (),
    config: Optional[AnalyticsConfig] = None,
) -> List[MatrixPoint]:
    """Average engagement and comprehension per student over completed sessions."""

    config = config or DEFAULT_CONFIG
    completed = [s for s in sessions if s.is_completed]
    if not completed:
        return []

    names = student_names(students)
    frame = records_to_frame(completed, Session)
    grouped = (
        frame.groupby("student_id", sort=False)
        .agg(
            avg_engagement=("engagement_score", "mean"),
            avg_comprehension=("comprehension_score", "mean"),
            session_count=("id", "count"),
        )
        .reset_index()
    )

    points = []
    for row in grouped.itertuples(index=False):
        avg_eng = float(row.avg_engagement)
        avg_comp = float(row.avg_comprehension)
        points.append(
            MatrixPoint(
                student_id=row.student_id,
                name=student_name(names, row.student_id),
                avg_engagement=avg_eng,
                avg_comprehension=avg_comp,
                session_count=int(row.session_count),
                quadrant=quadrant_label(avg_eng, avg_comp, config.quadrant_midpoint),
            )
        )
    return points


def risk_tier(reasons: Sequence[str], high_at: int = DEFAULT_CONFIG.high_risk_reasons) -> str:
    if len(reasons) >= high_at:
        return RISK_HIGH
    if reasons:
        return RISK_MEDIUM
    return RISK_LOW


def assess_retention_risk(
    students: Iterable[Student],
    sessions: Sequence[Session],
    now: Optional[Moment] = None,
    config: Optional[AnalyticsConfig] = None,
) -> List[RetentionRisk]:
    """
    Flag active students who look likely to drop off.

    Each active student is judged on their full session history:
    - no completed session in more than `stale_after_days` (or none at all)
    - cancellation/no-show share above `cancellation_risk_ratio`
    - low average engagement or comprehension over the most recent sessions

    Results are ordered by number of reasons, most first; ties keep student order.
    """

    config = config or DEFAULT_CONFIG
    now_ts = resolve_now(now)

    by_student: Dict[str, List[Session]] = {}
    for session in sessions:
        by_student.setdefault(session.student_id, []).append(session)

    risks = []
    for student in students:
        if student.status != "active":
            continue
        reasons, flags = _retention_reasons(by_student.get(student.id, []), now_ts, config)
        risks.append(
            RetentionRisk(
                student_id=student.id,
                name=student.name,
                tier=risk_tier(reasons, config.high_risk_reasons),
                reasons=tuple(reasons),
                flags=tuple(flags),
            )
        )

    risks.sort(key=lambda r: len(r.reasons), reverse=True)
    return risks


def _retention_reasons(
    history: Sequence[Session],
    now_ts: pd.Timestamp,
    config: AnalyticsConfig,
) -> Tuple[List[str], List[str]]:
    reasons: List[str] = []
    flags: List[str] = []

    completed = [s for s in history if s.is_completed]
    missed = [s for s in history if s.is_missed]
    # Latest first; ISO date strings order chronologically.
    recent = sorted(completed, key=lambda s: s.scheduled_date, reverse=True)

    if recent:
        last_day = parse_day(recent[0].scheduled_date)
        if last_day is not None:
            days = days_between(now_ts, last_day)
            if days > config.stale_after_days:
                reasons.append(f"No session in {days} days")
                flags.append("stale")
    else:
        reasons.append("No completed sessions")
        flags.append("no_completed_sessions")

    if len(history) >= config.min_sessions_for_cancellation:
        ratio = len(missed) / len(history)
        if ratio > config.cancellation_risk_ratio:
            reasons.append(f"{_round_half_up(ratio * 100)}% cancellation rate")
            flags.append("high_cancellation")

    if len(recent) >= config.recent_window:
        window = recent[: config.recent_window]
        avg_eng = sum(s.engagement_score for s in window) / len(window)
        if avg_eng < config.low_score_threshold:
            reasons.append(f"Low recent engagement ({avg_eng:.1f}/10)")
            flags.append("low_engagement")
        avg_comp = sum(s.comprehension_score for s in window) / len(window)
        if avg_comp < config.low_score_threshold:
            reasons.append(f"Low recent comprehension ({avg_comp:.1f}/10)")
            flags.append("low_comprehension")

    return reasons, flags


def risk_report_frame(risks: Sequence[RetentionRisk]) -> pd.DataFrame:
    """One row per student, reasons joined with '; ' for parquet export."""

    rows = [
        {
            "student_id": risk.student_id,
            "name": risk.name,
            "tier": risk.tier,
            "reason_count": len(risk.reasons),
            "reasons": "; ".join(risk.reasons),
            "flags": ",".join(risk.flags),
        }
        for risk in risks
    ]
    if not rows:
        return pd.DataFrame(columns=["student_id", "name", "tier", "reason_count", "reasons", "flags"])
    return pd.DataFrame(rows)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
