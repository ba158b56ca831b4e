# ABOUTME: Coerces raw store rows into typed tutoring records.
# ABOUTME: Parses numeric fields up front so aggregates never see NaN or strings.

from __future__ import annotations

import math
from dataclasses import asdict, fields
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Sequence, Type

import pandas as pd

from .schemas import Assessment, Goal, Session, Student, Subject

SCORE_MIN = 1
SCORE_MAX = 10
DEFAULT_SCORE = 5


def session_from_row(row: Mapping[str, Any]) -> Session:
    return Session(
        id=_required(row, "id", "sessions"),
        student_id=_required(row, "student_id", "sessions"),
        scheduled_date=_date_text(row.get("scheduled_date")) or "",
        duration_minutes=int(max(_number(row.get("duration_minutes"), 0), 0)),
        amount=float(max(_number(row.get("amount"), 0.0), 0.0)),
        status=_text(row.get("status")) or "completed",
        subject_id=_optional_id(row.get("subject_id")),
        engagement_score=_score(row.get("engagement_score")),
        comprehension_score=_score(row.get("comprehension_score")),
        topics_covered=_text(row.get("topics_covered")),
        homework_assigned=_text(row.get("homework_assigned")),
        notes=_text(row.get("notes")),
    )


def assessment_from_row(row: Mapping[str, Any]) -> Assessment:
    return Assessment(
        id=_required(row, "id", "assessments"),
        student_id=_required(row, "student_id", "assessments"),
        skill_name=_text(row.get("skill_name")),
        score=_score(row.get("score")),
        assessed_at=_date_text(row.get("assessed_at")) or "",
        subject_id=_optional_id(row.get("subject_id")),
        notes=_text(row.get("notes")),
    )


def goal_from_row(row: Mapping[str, Any]) -> Goal:
    return Goal(
        id=_required(row, "id", "goals"),
        student_id=_required(row, "student_id", "goals"),
        title=_text(row.get("title")),
        description=_text(row.get("description")),
        target_date=_date_text(row.get("target_date")),
        status=_text(row.get("status")) or "active",
    )


def student_from_row(row: Mapping[str, Any]) -> Student:
    return Student(
        id=_required(row, "id", "students"),
        name=_text(row.get("name")),
        status=_text(row.get("status")) or "active",
        grade=_text(row.get("grade")),
        parent_name=_text(row.get("parent_name")),
        parent_email=_text(row.get("parent_email")),
        parent_phone=_text(row.get("parent_phone")),
        started_at=_date_text(row.get("started_at")),
    )


def subject_from_row(row: Mapping[str, Any]) -> Subject:
    return Subject(
        id=_required(row, "id", "subjects"),
        name=_text(row.get("name")),
        category=_text(row.get("category")),
    )


def records_to_frame(records: Sequence[Any], record_type: Optional[Type] = None) -> pd.DataFrame:
    """
    Flatten dataclass records into a DataFrame keyed by field name.

    `record_type` supplies the columns when `records` is empty.
    """

    if records:
        return pd.DataFrame([asdict(record) for record in records])
    if record_type is None:
        return pd.DataFrame()
    return pd.DataFrame(columns=[f.name for f in fields(record_type)])


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        # Array-like values have no single missing flag.
        return False


def _required(row: Mapping[str, Any], key: str, collection: str) -> str:
    value = row.get(key)
    if _is_missing(value) or not str(value).strip():
        raise ValueError(f"Row in '{collection}' is missing required field '{key}'.")
    return str(value).strip()


def _optional_id(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    text_value = str(value).strip()
    return text_value or None


def _text(value: Any) -> str:
    if _is_missing(value):
        return ""
    return str(value).strip()


def _date_text(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    if isinstance(value, (pd.Timestamp, datetime)):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text_value = str(value).strip()
    return text_value or None


def _number(value: Any, default: float) -> float:
    if _is_missing(value):
        return default
    parsed = pd.to_numeric(pd.Series([value]), errors="coerce").iloc[0]
    if pd.isna(parsed) or math.isinf(float(parsed)):
        return default
    return float(parsed)


def _score(value: Any) -> int:
    parsed = _number(value, DEFAULT_SCORE)
    return int(min(max(round(parsed), SCORE_MIN), SCORE_MAX))


def parse_rows(rows: Sequence[Mapping[str, Any]], parser) -> List[Any]:
    return [parser(row) for row in rows]
