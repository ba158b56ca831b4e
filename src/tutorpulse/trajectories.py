# ABOUTME: Builds per-student skill score series from assessments.
# ABOUTME: Derives trend arrows, first-to-last deltas, and improvement rankings.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import DEFAULT_CONFIG, AnalyticsConfig
from .schemas import Assessment, Student, student_name, student_names

TREND_UP = "↑"
TREND_DOWN = "↓"
TREND_FLAT = "→"
NO_TREND = "—"


@dataclass(frozen=True)
class ScorePoint:
    score: int
    assessed_at: str


@dataclass(frozen=True)
class SkillTrajectory:
    student_id: str
    student_name: str
    skill: str
    points: Tuple[ScorePoint, ...]

    @property
    def trend(self) -> str:
        return skill_trend(self.points)

    @property
    def first(self) -> ScorePoint:
        return self.points[0]

    @property
    def latest(self) -> ScorePoint:
        return self.points[-1]

    @property
    def change(self) -> Optional[int]:
        if len(self.points) < 2:
            return None
        return self.latest.score - self.first.score


@dataclass
class StudentTrajectories:
    student_id: str
    name: str
    skills: Dict[str, SkillTrajectory] = field(default_factory=dict)


@dataclass(frozen=True)
class SkillImprovement:
    student_id: str
    student: str
    skill: str
    start: int
    end: int
    change: int


def skill_trend(points: Sequence[ScorePoint]) -> str:
    """Compare the last two scores of a chronological series."""

    if len(points) < 2:
        return NO_TREND
    last = points[-1].score
    previous = points[-2].score
    if last > previous:
        return TREND_UP
    if last < previous:
        return TREND_DOWN
    return TREND_FLAT


def score_band(score: float) -> str:
    if score >= 8:
        return "strong"
    if score >= 6:
        return "steady"
    if score >= 4:
        return "developing"
    return "struggling"


def build_skill_trajectories(
    assessments: Iterable[Assessment],
    students: Iterable[Student] = (),
) -> Dict[str, StudentTrajectories]:
    """
    Group assessments by student id and skill name into chronological series.

    Entries are sorted by `assessed_at` as text, which is chronological for
    ISO-8601 dates; equal dates keep their input order. Student and skill
    ordering follows first appearance in `assessments`.
    """

    names = student_names(students)
    grouped: Dict[str, Dict[str, List[ScorePoint]]] = {}
    for assessment in assessments:
        skills = grouped.setdefault(assessment.student_id, {})
        skills.setdefault(assessment.skill_name, []).append(
            ScorePoint(score=assessment.score, assessed_at=assessment.assessed_at)
        )

    result: Dict[str, StudentTrajectories] = {}
    for student_id, skills in grouped.items():
        name = student_name(names, student_id)
        entry = StudentTrajectories(student_id=student_id, name=name)
        for skill, points in skills.items():
            ordered = tuple(sorted(points, key=lambda p: p.assessed_at))
            entry.skills[skill] = SkillTrajectory(
                student_id=student_id,
                student_name=name,
                skill=skill,
                points=ordered,
            )
        result[student_id] = entry
    return result


def rank_skill_improvements(
    assessments: Iterable[Assessment],
    students: Iterable[Student] = (),
    top_n: Optional[int] = None,
    config: Optional[AnalyticsConfig] = None,
) -> List[SkillImprovement]:
    """
    Rank every series with two or more scores by last-minus-first change.

    `top_n=None` applies the configured limit; `top_n=0` keeps every series.
    A negative limit raises `ValueError`.
    """

    config = config or DEFAULT_CONFIG
    limit = config.top_improvements if top_n is None else top_n
    if limit < 0:
        raise ValueError(f"Improvement limit must be zero or positive, got {limit}.")

    improvements = []
    for student in build_skill_trajectories(assessments, students).values():
        for trajectory in student.skills.values():
            if trajectory.change is None:
                continue
            improvements.append(
                SkillImprovement(
                    student_id=trajectory.student_id,
                    student=trajectory.student_name,
                    skill=trajectory.skill,
                    start=trajectory.first.score,
                    end=trajectory.latest.score,
                    change=trajectory.change,
                )
            )

    improvements.sort(key=lambda imp: imp.change, reverse=True)
    if limit:
        return improvements[:limit]
    return improvements
