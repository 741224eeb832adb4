"""
Adaptive Engine CLI.

Developer tool for inspecting the engine locally.

Commands:
- adaptive-engine templates   - List registered templates
- adaptive-engine compile     - Render one compiled question
- adaptive-engine pool        - Show precompiled pool statistics
- adaptive-engine suggest     - Run the cross-session difficulty suggester
"""
from __future__ import annotations

from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from adaptive_engine.adaptive.difficulty_suggester import DifficultySuggester
from adaptive_engine.adaptive.models import HistoricalPerformanceMetrics
from adaptive_engine.config import get_settings
from adaptive_engine.content.compiler import QuestionCompiler
from adaptive_engine.content.question_pool import QuestionPool
from adaptive_engine.content.template_loader import build_template_registry
from adaptive_engine.errors import AdaptiveEngineError
from adaptive_engine.logging_config import configure_logging


# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="adaptive-engine",
    help="Adaptive content engine: deterministic questions and difficulty decisions",
    no_args_is_help=True,
)
console = Console()

STRATEGY_STYLES = {
    "challenge": "bold magenta",
    "support": "bold yellow",
    "celebrate": "bold green",
    "encourage": "bold cyan",
}


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    raise typer.Exit(1)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable debug logging",
    ),
) -> None:
    """Adaptive content engine developer CLI."""
    if verbose:
        configure_logging("DEBUG", get_settings().log_file)


# =============================================================================
# Commands
# =============================================================================

@app.command()
def templates() -> None:
    """List registered question templates."""
    try:
        registry = build_template_registry()
    except AdaptiveEngineError as e:
        _fail(e)

    table = Table(title="Question Templates")
    table.add_column("ID", style="cyan")
    table.add_column("Subject")
    table.add_column("Skill")
    table.add_column("Kind")
    table.add_column("Level", justify="right")
    table.add_column("Formula", style="dim")

    for template in registry:
        table.add_row(
            escape(template.id),
            escape(template.subject),
            escape(template.skill_area),
            template.kind.value,
            str(template.difficulty_level),
            escape(template.correct_answer_formula),
        )
    console.print(table)


@app.command("compile")
def compile_question(
    template_id: str = typer.Argument(..., help="Template ID"),
    seed: int = typer.Option(
        0,
        "--seed", "-s",
        help="Seed selecting slot values, distractors and option order",
    ),
) -> None:
    """Compile and display a single question."""
    settings = get_settings()
    try:
        template = build_template_registry(settings).require(template_id)
        compiler = QuestionCompiler(
            distractor_count=settings.distractor_count,
            max_backfill_offset=settings.max_backfill_offset,
        )
        question = compiler.compile(template, seed)
    except AdaptiveEngineError as e:
        _fail(e)

    content = escape(question.question_text) + "\n\n"
    for i, option in enumerate(question.options):
        marker = "[green]*[/green]" if i == question.correct_index else " "
        content += f" {marker} {chr(65 + i)}. {escape(option)}\n"
    content += f"\n[dim]{escape(question.explanation)}[/dim]"

    console.print(
        Panel(
            content,
            title=f"{escape(question.id)}  |  level {question.difficulty_level}",
            title_align="left",
            border_style="cyan",
            padding=(1, 2),
        )
    )


@app.command("pool")
def pool_stats() -> None:
    """Precompile every template and show pool statistics."""
    settings = get_settings()
    try:
        question_pool = QuestionPool(
            build_template_registry(settings),
            QuestionCompiler(settings.distractor_count, settings.max_backfill_offset),
            batch_size=settings.precompile_batch_size,
            wildcard_skill_area=settings.wildcard_skill_area,
        )
        stats = question_pool.precompile()
    except AdaptiveEngineError as e:
        _fail(e)

    console.print("\n[bold cyan]Question Pool[/bold cyan]")
    summary = Table(show_header=False, box=None)
    summary.add_column("Metric", style="dim")
    summary.add_column("Value", style="bold")
    summary.add_row("Templates", str(stats.total_templates))
    summary.add_row("Questions", str(stats.total_questions))
    summary.add_row("Batch size", str(settings.precompile_batch_size))
    console.print(summary)

    table = Table()
    table.add_column("Template", style="cyan")
    table.add_column("Questions", justify="right")
    for template_id, count in stats.questions_per_template.items():
        table.add_row(template_id, str(count))
    console.print(table)


@app.command()
def suggest(
    current: int = typer.Option(
        ...,
        "--current", "-c",
        min=1, max=5,
        help="Current difficulty level (1-5)",
    ),
    accuracy: float = typer.Option(..., "--accuracy", help="Accuracy rate (0-100)"),
    consistency: float = typer.Option(..., "--consistency", help="Consistency score (0-100)"),
    engagement: float = typer.Option(..., "--engagement", help="Engagement level (0-100)"),
    scores: Optional[List[float]] = typer.Option(
        None,
        "--score",
        help="Recent session score, oldest first (repeatable)",
    ),
    strengths: Optional[List[str]] = typer.Option(None, "--strength", help="Strength area (repeatable)"),
    challenges: Optional[List[str]] = typer.Option(None, "--challenge", help="Challenge area (repeatable)"),
) -> None:
    """Suggest the next session's starting difficulty."""
    try:
        metrics = HistoricalPerformanceMetrics(
            accuracy_rate=accuracy,
            consistency_score=consistency,
            engagement_level=engagement,
            recent_session_scores=scores or [],
            strength_areas=strengths or [],
            challenge_areas=challenges or [],
        )
    except ValueError as e:
        _fail(e)

    adjustment = DifficultySuggester().suggest(current, metrics)
    style = STRATEGY_STYLES.get(adjustment.encouragement_strategy.value, "bold")

    content = (
        f"Level: [bold]{current}[/bold] -> [bold]{adjustment.new_difficulty_level}[/bold] "
        f"({adjustment.direction.value})\n"
        f"Strategy: [{style}]{adjustment.encouragement_strategy.value}[/{style}]\n\n"
        f"{adjustment.adjustment_reason}\n\n"
        "[bold]Interventions[/bold]\n"
        + "\n".join(f"  - {item}" for item in adjustment.recommended_interventions)
    )
    if adjustment.suggested_practice_areas:
        content += "\n\n[bold]Practice areas[/bold]\n" + "\n".join(
            f"  - {area}" for area in adjustment.suggested_practice_areas
        )

    console.print(Panel(content, title="Difficulty Suggestion", border_style="cyan", padding=(1, 2)))


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_file)
    app()


if __name__ == "__main__":
    main()
