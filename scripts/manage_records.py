# ABOUTME: Provides a CLI for adding and updating tutoring records in the store.
# ABOUTME: Mirrors the dashboard forms for students, subjects, sessions, assessments, and goals.

import os
from datetime import date
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from src.tutorpulse.schemas import GOAL_STATUSES, SESSION_STATUSES, STUDENT_STATUSES
from src.tutorpulse.store import RecordStore, WriteResult

app = typer.Typer(help="Create and update records in a TutorPulse record store.")


def _default_store_dir() -> Path:
    return Path(os.environ.get("TUTORPULSE_STORE_DIR", "data/store"))


STORE_OPTION = typer.Option(_default_store_dir(), "--store-dir", help="Directory holding collection parquet files.")
TUTOR_OPTION = typer.Option(..., "--tutor-id", help="Tutor that owns the record.")


def _check_choice(value: str, choices, param_hint: str) -> str:
    normalized = value.strip().lower()
    if normalized not in choices:
        raise typer.BadParameter(f"Expected one of: {', '.join(choices)}.", param_hint=param_hint)
    return normalized


def _check_score(value: int, param_hint: str) -> int:
    if not 1 <= value <= 10:
        raise typer.BadParameter("Scores run from 1 to 10.", param_hint=param_hint)
    return value


def _check_date(value: Optional[str], param_hint: str) -> Optional[str]:
    if not value:
        return None
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError as exc:
        raise typer.BadParameter("Dates must be ISO formatted (YYYY-MM-DD).", param_hint=param_hint) from exc


def _report(action: str, collection: str, result: WriteResult) -> None:
    if not result.ok:
        typer.echo(f"[store] {action} failed: {result.error}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"[store] {action} {collection} record {result.record_id}")


def _insert(store_dir: Path, collection: str, row: Dict[str, Any]) -> None:
    _report("Inserted", collection, RecordStore(store_dir).insert(collection, row))


@app.command("add-student")
def add_student(
    name: str = typer.Option(..., "--name", help="Student display name."),
    grade: str = typer.Option("", "--grade"),
    parent_name: str = typer.Option("", "--parent-name"),
    parent_email: str = typer.Option("", "--parent-email"),
    parent_phone: str = typer.Option("", "--parent-phone"),
    tutor_id: str = TUTOR_OPTION,
    store_dir: Path = STORE_OPTION,
) -> None:
    _insert(
        store_dir,
        "students",
        {
            "tutor_id": tutor_id,
            "name": name.strip(),
            "grade": grade,
            "parent_name": parent_name,
            "parent_email": parent_email,
            "parent_phone": parent_phone,
            "status": "active",
            "started_at": date.today().isoformat(),
        },
    )


@app.command("toggle-student")
def toggle_student(
    student_id: str = typer.Option(..., "--student-id"),
    store_dir: Path = STORE_OPTION,
) -> None:
    """Flip a student between active and paused."""
    store = RecordStore(store_dir)
    rows = store.query("students", filters={"id": student_id})
    if not rows:
        typer.echo(f"[store] Unknown student '{student_id}'", err=True)
        raise typer.Exit(code=1)
    next_status = "paused" if rows[0].get("status") == "active" else "active"
    _report("Updated", "students", store.update("students", student_id, {"status": next_status}))


@app.command("set-student-status")
def set_student_status(
    student_id: str = typer.Option(..., "--student-id"),
    status: str = typer.Option(..., "--status", help="active, paused, graduated, or dropped."),
    store_dir: Path = STORE_OPTION,
) -> None:
    status = _check_choice(status, STUDENT_STATUSES, "--status")
    _report("Updated", "students", RecordStore(store_dir).update("students", student_id, {"status": status}))


@app.command("add-subject")
def add_subject(
    name: str = typer.Option(..., "--name"),
    category: str = typer.Option("", "--category"),
    tutor_id: str = TUTOR_OPTION,
    store_dir: Path = STORE_OPTION,
) -> None:
    _insert(store_dir, "subjects", {"tutor_id": tutor_id, "name": name.strip(), "category": category})


@app.command("log-session")
def log_session(
    student_id: str = typer.Option(..., "--student-id"),
    scheduled_date: str = typer.Option(None, "--date", help="Session date (YYYY-MM-DD); defaults to today."),
    duration_minutes: int = typer.Option(60, "--duration", help="Length in minutes."),
    amount: float = typer.Option(0.0, "--amount", help="Amount billed."),
    status: str = typer.Option("completed", "--status", help="completed, scheduled, cancelled, or no-show."),
    subject_id: str = typer.Option(None, "--subject-id"),
    engagement: int = typer.Option(5, "--engagement", help="Engagement score 1-10."),
    comprehension: int = typer.Option(5, "--comprehension", help="Comprehension score 1-10."),
    topics: str = typer.Option("", "--topics"),
    homework: str = typer.Option("", "--homework"),
    notes: str = typer.Option("", "--notes"),
    tutor_id: str = TUTOR_OPTION,
    store_dir: Path = STORE_OPTION,
) -> None:
    if duration_minutes < 0:
        raise typer.BadParameter("Duration cannot be negative.", param_hint="--duration")
    if amount < 0:
        raise typer.BadParameter("Amount cannot be negative.", param_hint="--amount")
    _insert(
        store_dir,
        "sessions",
        {
            "tutor_id": tutor_id,
            "student_id": student_id,
            "subject_id": subject_id,
            "scheduled_date": _check_date(scheduled_date, "--date") or date.today().isoformat(),
            "duration_minutes": duration_minutes,
            "amount": float(amount),
            "status": _check_choice(status, SESSION_STATUSES, "--status"),
            "topics_covered": topics,
            "homework_assigned": homework,
            "engagement_score": _check_score(engagement, "--engagement"),
            "comprehension_score": _check_score(comprehension, "--comprehension"),
            "notes": notes,
        },
    )


@app.command("add-assessment")
def add_assessment(
    student_id: str = typer.Option(..., "--student-id"),
    skill_name: str = typer.Option(..., "--skill", help="Free-text skill name, e.g. Factoring."),
    score: int = typer.Option(5, "--score", help="Score 1-10."),
    assessed_at: str = typer.Option(None, "--date", help="Assessment date (YYYY-MM-DD); defaults to today."),
    subject_id: str = typer.Option(None, "--subject-id"),
    notes: str = typer.Option("", "--notes"),
    tutor_id: str = TUTOR_OPTION,
    store_dir: Path = STORE_OPTION,
) -> None:
    _insert(
        store_dir,
        "assessments",
        {
            "tutor_id": tutor_id,
            "student_id": student_id,
            "subject_id": subject_id,
            "skill_name": skill_name.strip(),
            "score": _check_score(score, "--score"),
            "assessed_at": _check_date(assessed_at, "--date") or date.today().isoformat(),
            "notes": notes,
        },
    )


@app.command("add-goal")
def add_goal(
    student_id: str = typer.Option(..., "--student-id"),
    title: str = typer.Option(..., "--title"),
    description: str = typer.Option("", "--description"),
    target_date: str = typer.Option(None, "--target-date", help="Target date (YYYY-MM-DD)."),
    tutor_id: str = TUTOR_OPTION,
    store_dir: Path = STORE_OPTION,
) -> None:
    _insert(
        store_dir,
        "goals",
        {
            "tutor_id": tutor_id,
            "student_id": student_id,
            "title": title.strip(),
            "description": description,
            "target_date": _check_date(target_date, "--target-date"),
            "status": "active",
        },
    )


@app.command("set-goal-status")
def set_goal_status(
    goal_id: str = typer.Option(..., "--goal-id"),
    status: str = typer.Option(..., "--status", help="active, achieved, or abandoned."),
    store_dir: Path = STORE_OPTION,
) -> None:
    status = _check_choice(status, GOAL_STATUSES, "--status")
    _report("Updated", "goals", RecordStore(store_dir).update("goals", goal_id, {"status": status}))


def main():
    app()


if __name__ == "__main__":
    main()
