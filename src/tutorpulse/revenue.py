# ABOUTME: Reduces tutoring sessions into revenue, hours, and cancellation metrics.
# ABOUTME: Backs the revenue tiles and the per-student revenue breakdown.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from .records import records_to_frame
from .schemas import Session, Student, student_name, student_names


@dataclass(frozen=True)
class StudentRevenue:
    student_id: str
    name: str
    revenue: float
    session_count: int
    hours: float


@dataclass(frozen=True)
class RevenueSummary:
    total_revenue: float
    total_hours: float
    effective_hourly_rate: float
    cancellation_rate: float
    lost_revenue: float
    session_count: int
    completed_count: int
    missed_count: int
    by_student: Dict[str, StudentRevenue] = field(default_factory=dict)

    def ranked_students(self) -> List[StudentRevenue]:
        """Students ordered by revenue, highest first; ties keep input order."""
        return sorted(self.by_student.values(), key=lambda r: r.revenue, reverse=True)


def completed_sessions(sessions: Iterable[Session]) -> List[Session]:
    return [s for s in sessions if s.is_completed]


def missed_sessions(sessions: Iterable[Session]) -> List[Session]:
    return [s for s in sessions if s.is_missed]


def total_revenue(sessions: Iterable[Session]) -> float:
    return float(sum(s.amount for s in completed_sessions(sessions)))


def total_hours(sessions: Iterable[Session]) -> float:
    return sum(s.duration_minutes for s in completed_sessions(sessions)) / 60


def effective_hourly_rate(sessions: Sequence[Session]) -> float:
    hours = total_hours(sessions)
    return total_revenue(sessions) / hours if hours > 0 else 0.0


def cancellation_rate(sessions: Sequence[Session]) -> float:
    """Share of sessions cancelled or missed, as a percentage in [0, 100]."""
    if not sessions:
        return 0.0
    return len(missed_sessions(sessions)) / len(sessions) * 100


def lost_revenue(sessions: Sequence[Session]) -> float:
    """Missed sessions priced at the average completed-session amount."""
    completed = completed_sessions(sessions)
    if not completed:
        return 0.0
    average = total_revenue(completed) / len(completed)
    return len(missed_sessions(sessions)) * average


def revenue_by_student(
    sessions: Sequence[Session],
    students: Iterable[Student] = (),
) -> Dict[str, StudentRevenue]:
    """
    Accumulate completed-session revenue, count, and hours per student.

    Keyed by student id so two students sharing a display name stay separate;
    the name is joined from `students` and falls back to "Unknown".
    """

    completed = completed_sessions(sessions)
    if not completed:
        return {}

    names = student_names(students)
    frame = records_to_frame(completed, Session)
    grouped = (
        frame.groupby("student_id", sort=False)
        .agg(
            revenue=("amount", "sum"),
            session_count=("id", "count"),
            minutes=("duration_minutes", "sum"),
        )
        .reset_index()
    )

    result: Dict[str, StudentRevenue] = {}
    for row in grouped.itertuples(index=False):
        result[row.student_id] = StudentRevenue(
            student_id=row.student_id,
            name=student_name(names, row.student_id),
            revenue=float(row.revenue),
            session_count=int(row.session_count),
            hours=float(row.minutes) / 60,
        )
    return result


def summarize_revenue(
    sessions: Sequence[Session],
    students: Iterable[Student] = (),
) -> RevenueSummary:
    sessions = list(sessions)
    return RevenueSummary(
        total_revenue=total_revenue(sessions),
        total_hours=total_hours(sessions),
        effective_hourly_rate=effective_hourly_rate(sessions),
        cancellation_rate=cancellation_rate(sessions),
        lost_revenue=lost_revenue(sessions),
        session_count=len(sessions),
        completed_count=len(completed_sessions(sessions)),
        missed_count=len(missed_sessions(sessions)),
        by_student=revenue_by_student(sessions, students),
    )
