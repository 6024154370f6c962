# ABOUTME: Provides an operator CLI over the four personalization engine operations.
# ABOUTME: Reads JSON inputs from files and renders results as rich tables or raw JSON.

import asyncio
import json
from datetime import date
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from src.common.config import load_engine_config
from src.common.errors import EngineError
from src.common.repository import InMemoryStudentRepository
from src.personalization.engine import PersonalizationEngine

console = Console()
app = typer.Typer(help="Personalized learning paths, content recommendations, and progress analytics.")


def _read_json(path: Path) -> Any:
    if not path.exists():
        console.print(f"[red]Missing input file {path}[/red]")
        raise typer.Exit(code=1)
    return json.loads(path.read_text())


def _engine(config: Optional[Path], store: Optional[Path]) -> PersonalizationEngine:
    repository = InMemoryStudentRepository.from_json(store) if store else InMemoryStudentRepository()
    return PersonalizationEngine.from_config(load_engine_config(config), repository=repository)


def _fail(exc: EngineError) -> None:
    console.print(f"[red]{type(exc).__name__}: {escape(str(exc))}[/red]")
    raise typer.Exit(code=1)


def _dump(payload: Any) -> None:
    console.print_json(json.dumps(payload))


def _parse_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"'{value}' is not an ISO date (YYYY-MM-DD)") from exc


@app.command()
def path(
    student_id: str = typer.Option(..., "--student-id", help="Student identifier."),
    history: Path = typer.Option(..., "--history", help="JSON file with the learning history."),
    available_time: float = typer.Option(..., "--available-time", help="Study hours available per week."),
    config: Optional[Path] = typer.Option(None, "--config", help="Engine config YAML."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON."),
) -> None:
    """
    Build a personalized learning path from a learning history.
    """
    engine = _engine(config, None)
    try:
        result = asyncio.run(
            engine.generate_personalized_path(student_id, _read_json(history), {"availableTime": available_time})
        )
    except EngineError as exc:
        _fail(exc)

    if as_json:
        _dump(result.to_dict())
        return

    console.rule(f"[bold blue]Personalized path for {student_id}[/bold blue]")
    console.print(
        f"[bold]Learning style:[/] {result.learning_style.primary} ({result.learning_style.confidence:.2f})"
    )
    console.print(
        f"[bold]Difficulty:[/] {result.recommended_difficulty.level} "
        f"(score {result.recommended_difficulty.score:.2f}, confidence {result.recommended_difficulty.confidence:.2f})"
    )
    estimate = result.estimated_completion_time
    console.print(f"[bold]Estimate:[/] {estimate.total_hours}h over {estimate.estimated_weeks} weeks")

    modules = Table(show_header=True, header_style="bold magenta")
    modules.add_column("Module")
    modules.add_column("Style")
    modules.add_column("Minutes")
    for module in result.customized_modules:
        modules.add_row(module.topic, module.learning_style, str(module.estimated_time))
    console.print(modules)

    schedule = result.adaptive_schedule
    console.print(
        f"[bold]Schedule:[/] {schedule.sessions_per_week} sessions/week, {schedule.session_duration:g} min each, "
        f"break every {schedule.break_frequency} min, {schedule.review_sessions} review sessions"
    )


@app.command()
def recommend(
    student_id: str = typer.Option(..., "--student-id", help="Student identifier."),
    topic: str = typer.Option(..., "--topic", help="Current curriculum topic."),
    difficulty: str = typer.Option("beginner", "--difficulty", help="Curriculum difficulty level."),
    store: Path = typer.Option(..., "--store", help="JSON student store holding profiles."),
    config: Optional[Path] = typer.Option(None, "--config", help="Engine config YAML."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON."),
) -> None:
    """
    Recommend the next topics, supplementary content, and exercises.
    """
    engine = _engine(config, store)
    try:
        result = asyncio.run(engine.recommend_next_content(student_id, topic, difficulty))
    except EngineError as exc:
        _fail(exc)

    if as_json:
        _dump(result.to_dict())
        return

    topics = result.next_topics
    console.print(f"[bold]Next:[/] {topics.next or '-'}")
    console.print(f"[bold]Upcoming:[/] {', '.join(topics.upcoming) or '-'}")
    if topics.prerequisites:
        console.print(f"[bold]Prerequisites:[/] {', '.join(topics.prerequisites)}")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Exercise")
    table.add_column("Difficulty")
    table.add_column("Minutes")
    for exercise in result.adaptive_exercises:
        table.add_row(exercise.type, exercise.difficulty, str(exercise.estimated_time))
    console.print(table)
    console.print(f"[bold]Estimated time:[/] {result.estimated_time} min")


@app.command()
def progress(
    student_id: str = typer.Option(..., "--student-id", help="Student identifier."),
    course_id: Optional[str] = typer.Option(None, "--course-id", help="Course identifier."),
    activity: Optional[Path] = typer.Option(None, "--activity", help="JSON activity snapshot; defaults to the store."),
    store: Optional[Path] = typer.Option(None, "--store", help="JSON student store holding activity."),
    as_of: Optional[str] = typer.Option(
        None, "--as-of", callback=_parse_date, help="ISO date to project completion from."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON."),
) -> None:
    """
    Analyze progress and project completion for one course.
    """
    engine = _engine(None, store)
    snapshot = _read_json(activity) if activity else None
    try:
        report = engine.analyze_progress(student_id, course_id, snapshot, as_of=as_of)
    except EngineError as exc:
        _fail(exc)

    if as_json:
        _dump(report.to_dict())
        return

    metrics = report.current_progress
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("Completion", f"{metrics.completion_rate:.2f}")
    table.add_row("Average score", f"{metrics.average_score:.1f}")
    table.add_row("Time efficiency", f"{metrics.time_efficiency:.2f}")
    table.add_row("Consistency", f"{metrics.consistency_score:.2f}")
    table.add_row("Engagement", f"{metrics.engagement_level:.2f}")
    table.add_row("Trend", metrics.difficulty_adaptation)
    table.add_row("Dropout risk", f"{report.predictions.dropout_risk:.2f}")
    completion = report.predictions.expected_completion_date
    table.add_row("Expected completion", completion.isoformat() if completion else "unknown")
    console.print(table)

    for rec in report.recommendations:
        color = {"low": "yellow", "medium": "orange3", "high": "red"}.get(rec.priority, "white")
        console.print(f"[{color}]{rec.type} ({rec.priority})[/{color}] {rec.message}")
    for risk in report.risk_factors:
        console.print(f"[red]risk[/red] {risk.factor} ({risk.severity})")
    for intervention in report.interventions:
        console.print(f"[cyan]intervention[/cyan] {intervention.type}: {intervention.description} ({intervention.urgency})")


@app.command()
def adapt(
    student_id: str = typer.Option(..., "--student-id", help="Student identifier."),
    performance: Path = typer.Option(..., "--performance", help="JSON with accuracy, completionTime, difficulty."),
) -> None:
    """
    Decide whether the student's difficulty should change.
    """
    engine = _engine(None, None)
    try:
        decision = engine.adapt_difficulty(student_id, _read_json(performance))
    except EngineError as exc:
        _fail(exc)
    _dump(decision.to_dict())


if __name__ == "__main__":
    app()
