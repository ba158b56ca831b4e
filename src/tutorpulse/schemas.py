# ABOUTME: Defines the tutoring records consumed by the analytics layer.
# ABOUTME: Centralizes student, subject, session, assessment, and goal shapes.

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional

STUDENT_STATUSES = ("active", "paused", "graduated", "dropped")
SESSION_STATUSES = ("completed", "scheduled", "cancelled", "no-show")
GOAL_STATUSES = ("active", "achieved", "abandoned")

COMPLETED = "completed"
MISSED_STATUSES = frozenset({"cancelled", "no-show"})

UNKNOWN_STUDENT = "Unknown"


@dataclass(frozen=True)
class Student:
    """A tutored student; used as an id -> name lookup and for the active filter."""

    id: str
    name: str
    status: str = "active"
    grade: str = ""
    parent_name: str = ""
    parent_email: str = ""
    parent_phone: str = ""
    started_at: Optional[str] = None


@dataclass(frozen=True)
class Subject:
    id: str
    name: str
    category: str = ""


@dataclass(frozen=True)
class Session:
    """One logged tutoring meeting with its outcome metadata."""

    id: str
    student_id: str
    scheduled_date: str
    duration_minutes: int = 0
    amount: float = 0.0
    status: str = COMPLETED
    subject_id: Optional[str] = None
    engagement_score: int = 5
    comprehension_score: int = 5
    topics_covered: str = ""
    homework_assigned: str = ""
    notes: str = ""

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED

    @property
    def is_missed(self) -> bool:
        return self.status in MISSED_STATUSES


@dataclass(frozen=True)
class Assessment:
    """A point-in-time skill score (1-10) for a student."""

    id: str
    student_id: str
    skill_name: str
    score: int
    assessed_at: str
    subject_id: Optional[str] = None
    notes: str = ""


@dataclass(frozen=True)
class Goal:
    id: str
    student_id: str
    title: str
    description: str = ""
    target_date: Optional[str] = None
    status: str = "active"


def student_names(students: Iterable[Student]) -> Dict[str, str]:
    """Build an id -> display name lookup; the first record for an id wins."""

    lookup: Dict[str, str] = {}
    for student in students:
        lookup.setdefault(student.id, student.name)
    return lookup


def student_name(lookup: Mapping[str, str], student_id: Optional[str]) -> str:
    if student_id is None:
        return UNKNOWN_STUDENT
    return lookup.get(student_id) or UNKNOWN_STUDENT
