# ABOUTME: Assembles the full analytics report from an in-memory record snapshot.
# ABOUTME: Applies the optional single-student filter before running each analysis.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .classification import MatrixPoint, RetentionRisk, assess_retention_risk, engagement_matrix
from .config import DEFAULT_CONFIG, AnalyticsConfig
from .dates import Moment, resolve_now
from .goals import GoalSummary, summarize_goals
from .revenue import RevenueSummary, summarize_revenue
from .schemas import Assessment, Goal, Session, Student, Subject
from .trajectories import SkillImprovement, rank_skill_improvements


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Point-in-time copy of every collection the analytics read."""

    students: Tuple[Student, ...] = ()
    subjects: Tuple[Subject, ...] = ()
    sessions: Tuple[Session, ...] = ()
    assessments: Tuple[Assessment, ...] = ()
    goals: Tuple[Goal, ...] = ()

    def filter_for_student(self, student_id: str) -> "AnalyticsSnapshot":
        return AnalyticsSnapshot(
            students=self.students,
            subjects=self.subjects,
            sessions=tuple(s for s in self.sessions if s.student_id == student_id),
            assessments=tuple(a for a in self.assessments if a.student_id == student_id),
            goals=tuple(g for g in self.goals if g.student_id == student_id),
        )


@dataclass(frozen=True)
class AnalyticsReport:
    revenue: RevenueSummary
    improvements: List[SkillImprovement]
    goals: GoalSummary
    matrix: List[MatrixPoint] = field(default_factory=list)
    retention: List[RetentionRisk] = field(default_factory=list)
    student_id: Optional[str] = None
    is_empty: bool = False


def build_analytics_report(
    snapshot: AnalyticsSnapshot,
    student_id: Optional[str] = None,
    now: Optional[Moment] = None,
    config: Optional[AnalyticsConfig] = None,
) -> AnalyticsReport:
    """
    Run every analysis over `snapshot`.

    With `student_id` set, revenue, improvements, and goals cover that student
    only, and the cohort views (engagement matrix, retention risk) are left
    empty. Emptiness reflects the unfiltered snapshot.
    """

    config = config or DEFAULT_CONFIG
    now_ts = resolve_now(now)
    scoped = snapshot.filter_for_student(student_id) if student_id else snapshot

    matrix: List[MatrixPoint] = []
    retention: List[RetentionRisk] = []
    if not student_id:
        matrix = engagement_matrix(snapshot.sessions, snapshot.students, config)
        retention = assess_retention_risk(snapshot.students, snapshot.sessions, now_ts, config)

    return AnalyticsReport(
        revenue=summarize_revenue(scoped.sessions, snapshot.students),
        improvements=rank_skill_improvements(scoped.assessments, snapshot.students, config=config),
        goals=summarize_goals(scoped.goals, now_ts),
        matrix=matrix,
        retention=retention,
        student_id=student_id,
        is_empty=not snapshot.sessions and not snapshot.assessments,
    )
