# ABOUTME: Provides a CLI that renders tutoring analytics from the record store.
# ABOUTME: Prints revenue, engagement quadrants, skill trends, goals, and retention risk.

import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from src.tutorpulse.classification import risk_report_frame, session_quadrant
from src.tutorpulse.config import load_config
from src.tutorpulse.goals import goal_urgency, goals_by_status, summarize_goals
from src.tutorpulse.report import AnalyticsSnapshot, build_analytics_report
from src.tutorpulse.schemas import student_name, student_names
from src.tutorpulse.store import RecordStore, load_snapshot
from src.tutorpulse.trajectories import build_skill_trajectories, score_band

console = Console()
app = typer.Typer(help="Render tutoring analytics from a TutorPulse record store.")

RISK_COLORS = {"High": "red", "Medium": "yellow", "Low": "green"}
TREND_COLORS = {"↑": "green", "↓": "red", "→": "yellow"}
BAND_COLORS = {"strong": "green", "steady": "blue", "developing": "yellow", "struggling": "red"}
URGENCY_COLORS = {"overdue": "red", "urgent": "orange3", "upcoming": "yellow", "on_track": "green"}
SESSION_ICONS = {"completed": "✅", "cancelled": "❌", "no-show": "⚠️"}


def _default_store_dir() -> Path:
    return Path(os.environ.get("TUTORPULSE_STORE_DIR", "data/store"))


def _load(store_dir: Path, tutor_id: Optional[str], config_path: Optional[Path]):
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc
    try:
        snapshot = load_snapshot(RecordStore(store_dir), tutor_id)
    except ValueError as exc:
        console.print(f"[red]Could not load records from {store_dir}: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    return snapshot, config


def _banded(score: int, suffix: str = "") -> str:
    color = BAND_COLORS[score_band(score)]
    return f"[{color}]{score}{suffix}[/{color}]"


def _resolve_student(snapshot: AnalyticsSnapshot, student_id: Optional[str]) -> Optional[str]:
    if student_id and student_id not in student_names(snapshot.students):
        raise typer.BadParameter(f"Unknown student '{student_id}'.", param_hint="--student-id")
    return student_id


@app.command()
def report(
    store_dir: Path = typer.Option(_default_store_dir(), "--store-dir", help="Directory holding collection parquet files."),
    tutor_id: str = typer.Option(None, "--tutor-id", help="Only include records owned by this tutor."),
    student_id: str = typer.Option(None, "--student-id", help="Restrict revenue, skills, and goals to one student."),
    config_path: Path = typer.Option(None, "--config", help="Analytics thresholds YAML."),
) -> None:
    """
    Print the full analytics overview.
    """
    snapshot, config = _load(store_dir, tutor_id, config_path)
    student_id = _resolve_student(snapshot, student_id)
    result = build_analytics_report(snapshot, student_id=student_id, config=config)

    console.rule("[bold blue]Analytics & Intelligence[/bold blue]")
    if student_id:
        console.print(f"[bold]Student:[/] {student_name(student_names(snapshot.students), student_id)}")

    revenue = result.revenue
    tiles = Table(show_header=True, header_style="bold magenta")
    for label in ("Total Revenue", "Total Hours", "Effective $/hr", "Cancellation Rate", "Revenue Lost"):
        tiles.add_column(label, justify="center")
    cancel_color = "red" if revenue.cancellation_rate > 15 else "white"
    tiles.add_row(
        f"${revenue.total_revenue:.0f}",
        f"{revenue.total_hours:.1f}",
        f"${revenue.effective_hourly_rate:.0f}",
        f"[{cancel_color}]{revenue.cancellation_rate:.0f}%[/{cancel_color}]",
        f"[red]${revenue.lost_revenue:.0f}[/red]",
    )
    console.print(tiles)

    ranked = revenue.ranked_students()
    if ranked:
        console.print()
        console.print("[bold green]Revenue by Student[/bold green]")
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Student")
        table.add_column("Revenue", justify="right")
        table.add_column("Sessions", justify="right")
        table.add_column("Hours", justify="right")
        for row in ranked:
            table.add_row(row.name, f"${row.revenue:.0f}", str(row.session_count), f"{row.hours:.1f}")
        console.print(table)

    if result.matrix:
        console.print()
        console.print("[bold green]Engagement × Comprehension[/bold green]")
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Student")
        table.add_column("Engagement", justify="right")
        table.add_column("Comprehension", justify="right")
        table.add_column("Quadrant")
        table.add_column("Sessions", justify="right")
        table.add_column("X %", justify="right")
        table.add_column("Y %", justify="right")
        for point in result.matrix:
            table.add_row(
                point.name,
                f"{point.avg_engagement:.1f}",
                f"{point.avg_comprehension:.1f}",
                point.quadrant,
                str(point.session_count),
                f"{point.x_pct:.0f}",
                f"{point.y_pct:.0f}",
            )
        console.print(table)

    if result.improvements:
        console.print()
        console.print("[bold green]Biggest Skill Improvements[/bold green]")
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Change", justify="right")
        table.add_column("Student")
        table.add_column("Skill")
        table.add_column("Scores")
        for imp in result.improvements:
            color = "green" if imp.change > 0 else "red" if imp.change < 0 else "white"
            table.add_row(f"[{color}]{imp.change:+d}[/{color}]", imp.student, imp.skill, f"{imp.start} → {imp.end}")
        console.print(table)

    goal_summary = result.goals
    console.print()
    console.print("[bold yellow]Goal Achievement[/bold yellow]")
    console.print(
        f"  Total: {goal_summary.total}  Achievement rate: {goal_summary.achievement_rate:.0f}%  "
        f"In progress: {goal_summary.active}  Overdue: [red]{goal_summary.overdue}[/red]"
    )

    if result.retention:
        console.print()
        console.print("[bold red]Student Retention Risk[/bold red]")
        _print_risks(result.retention)

    if result.is_empty:
        console.print()
        console.print("[dim]Log sessions and add skill assessments to see analytics.[/dim]")


@app.command()
def risk(
    store_dir: Path = typer.Option(_default_store_dir(), "--store-dir", help="Directory holding collection parquet files."),
    tutor_id: str = typer.Option(None, "--tutor-id", help="Only include records owned by this tutor."),
    config_path: Path = typer.Option(None, "--config", help="Analytics thresholds YAML."),
    output: Path = typer.Option(None, "--output", help="Optional parquet path for the risk table."),
) -> None:
    """
    Score every active student for retention risk.
    """
    snapshot, config = _load(store_dir, tutor_id, config_path)
    result = build_analytics_report(snapshot, config=config)
    if not result.retention:
        console.print("[green]No active students to score.[/green]")
    else:
        _print_risks(result.retention)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        risk_report_frame(result.retention).to_parquet(output, index=False)
        typer.echo(f"[report] Wrote {len(result.retention)} risk rows to {output}")


@app.command()
def skills(
    store_dir: Path = typer.Option(_default_store_dir(), "--store-dir", help="Directory holding collection parquet files."),
    tutor_id: str = typer.Option(None, "--tutor-id", help="Only include records owned by this tutor."),
    student_id: str = typer.Option(None, "--student-id", help="Show a single student's skills."),
) -> None:
    """
    Show per-student skill trajectories with trend arrows.
    """
    snapshot, _ = _load(store_dir, tutor_id, None)
    student_id = _resolve_student(snapshot, student_id)
    scoped = snapshot.filter_for_student(student_id) if student_id else snapshot
    trajectories = build_skill_trajectories(scoped.assessments, snapshot.students)

    if not trajectories:
        console.print("[dim]No skill assessments yet. Add assessments to track student progress over time.[/dim]")
        return

    for student in trajectories.values():
        table = Table(title=student.name, show_header=True, header_style="bold magenta")
        table.add_column("Skill")
        table.add_column("Trend", justify="center")
        table.add_column("Latest", justify="right")
        table.add_column("History")
        table.add_column("Span")
        for trajectory in student.skills.values():
            trend = trajectory.trend
            color = TREND_COLORS.get(trend, "dim")
            history = " ".join(_banded(p.score) for p in trajectory.points)
            span = trajectory.first.assessed_at
            if len(trajectory.points) > 1:
                span = f"{span} → {trajectory.latest.assessed_at}"
            table.add_row(
                trajectory.skill,
                f"[{color}]{trend}[/{color}]",
                _banded(trajectory.latest.score, "/10"),
                history,
                span,
            )
        console.print(table)


@app.command()
def goals(
    store_dir: Path = typer.Option(_default_store_dir(), "--store-dir", help="Directory holding collection parquet files."),
    tutor_id: str = typer.Option(None, "--tutor-id", help="Only include records owned by this tutor."),
    config_path: Path = typer.Option(None, "--config", help="Analytics thresholds YAML."),
) -> None:
    """
    List active goals with urgency, then achieved goals.
    """
    snapshot, config = _load(store_dir, tutor_id, config_path)
    names = student_names(snapshot.students)
    summary = summarize_goals(snapshot.goals)
    buckets = goals_by_status(snapshot.goals)

    console.print(
        f"[bold]Active:[/] {summary.active}  [bold]Achieved:[/] {summary.achieved}  "
        f"[bold]Abandoned:[/] {summary.abandoned}"
    )

    if buckets["active"]:
        table = Table(title="Active Goals", show_header=True, header_style="bold magenta")
        table.add_column("Goal")
        table.add_column("Student")
        table.add_column("Target")
        table.add_column("Urgency")
        for goal in buckets["active"]:
            urgency = goal_urgency(goal, config=config)
            label = ""
            if urgency:
                color = URGENCY_COLORS[urgency.level]
                label = f"[{color}]{urgency.label}[/{color}]"
            table.add_row(goal.title, student_name(names, goal.student_id), goal.target_date or "", label)
        console.print(table)

    if buckets["achieved"]:
        table = Table(title="Achieved", show_header=True, header_style="bold magenta")
        table.add_column("Goal")
        table.add_column("Student")
        for goal in buckets["achieved"]:
            table.add_row(goal.title, student_name(names, goal.student_id))
        console.print(table)

    if not snapshot.goals:
        console.print("[dim]No goals set yet. Set goals for your students to track their progress.[/dim]")


@app.command()
def sessions(
    store_dir: Path = typer.Option(_default_store_dir(), "--store-dir", help="Directory holding collection parquet files."),
    tutor_id: str = typer.Option(None, "--tutor-id", help="Only include records owned by this tutor."),
    config_path: Path = typer.Option(None, "--config", help="Analytics thresholds YAML."),
) -> None:
    """
    Print the session log, newest first, with a quadrant label per session.
    """
    snapshot, config = _load(store_dir, tutor_id, config_path)
    if not snapshot.sessions:
        console.print("[dim]No sessions logged yet. Log your first session to start tracking progress.[/dim]")
        return

    names = student_names(snapshot.students)
    subjects = {subject.id: subject.name for subject in snapshot.subjects}
    table = Table(show_header=True, header_style="bold magenta")
    for column in ("", "Date", "Student", "Subject", "Minutes", "Amount", "Eng", "Comp", "Label", "Topics"):
        table.add_column(column)
    for session in snapshot.sessions:
        table.add_row(
            SESSION_ICONS.get(session.status, "📅"),
            session.scheduled_date,
            student_name(names, session.student_id),
            subjects.get(session.subject_id, ""),
            str(session.duration_minutes),
            f"${session.amount:g}",
            f"{session.engagement_score}/10",
            f"{session.comprehension_score}/10",
            session_quadrant(session.engagement_score, session.comprehension_score, config.session_quadrant_midpoint),
            session.topics_covered,
        )
    console.print(table)


def _print_risks(risks) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Student")
    table.add_column("Risk")
    table.add_column("Reasons")
    for item in risks:
        color = RISK_COLORS[item.tier]
        table.add_row(item.name, f"[{color}]{item.tier.upper()}[/{color}]", "\n".join(f"• {r}" for r in item.reasons))
    console.print(table)


if __name__ == "__main__":
    app()
