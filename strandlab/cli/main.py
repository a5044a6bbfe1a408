"""
strandlab CLI - terminal driver for the assessment engine

Usage:
    strandlab validate                         # Check the question dataset
    strandlab grade report.html -p critical-angle -s 1
    strandlab quiz -p critical-angle -s 1 -l 2 # Run one level block
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from config import get_settings
from strandlab.block.machine import BlockSummary, next_level
from strandlab.data.loader import load_question_dataset, load_rubric_book
from strandlab.errors import DatasetError
from strandlab.logging_setup import configure_logging
from strandlab.progress.events import BadgeEarned, LevelUnlocked
from strandlab.questions.base import QuestionResponse
from strandlab.questions.models import (
    FillBlankQuestion,
    MatchClickQuestion,
    MCQQuestion,
    ShortAnswerQuestion,
)
from strandlab.rubric.evaluator import RubricEvaluator, RubricResult
from strandlab.session import AssessmentSession

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="strandlab",
    help="Strand-based assessment engine: score answers, run level blocks, grade written work",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


@app.callback()
def main(
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="Override the configured log level")
    ] = None,
) -> None:
    configure_logging(log_level)


# =============================================================================
# Content Commands
# =============================================================================


@app.command()
def validate(
    questions: Annotated[
        Path | None, typer.Argument(help="Question dataset JSON (defaults to configured path)")
    ] = None,
    rubrics: Annotated[
        Path | None, typer.Option("--rubrics", "-r", help="Also validate a rubric JSON file")
    ] = None,
) -> None:
    """
    Validate a question dataset.

    Exit codes:
        0 - All questions valid
        1 - Dataset unreadable or questions with problems
    """
    path = questions or Path(get_settings().question_data_path)
    console.print(f"[cyan]Validating {path}...[/]")

    try:
        dataset = load_question_dataset(path)
        if rubrics is not None:
            book = load_rubric_book(rubrics)
            console.print(f"[green]Rubrics OK[/] ({len(book.paths)} learning paths)")
    except DatasetError as e:
        console.print(f"[red]✗ {e}[/]")
        raise typer.Exit(1)

    table = Table(title="Blocks")
    table.add_column("Learning path", style="cyan")
    table.add_column("Strand", justify="right")
    table.add_column("Level", justify="right")
    table.add_column("Questions", justify="right")
    for block in dataset.iter_blocks():
        table.add_row(block.learning_path, str(block.strand), str(block.level), str(len(block.questions)))
    console.print(table)

    if dataset.issues:
        console.print(f"\n[red]✗ {len(dataset.issues)} problems found:[/]")
        for issue in dataset.issues:
            console.print(f"  [red]•[/] {issue}")
        raise typer.Exit(1)

    console.print(f"\n[green]✓ {dataset.question_count} questions valid[/]")


@app.command()
def grade(
    artifact: Annotated[Path, typer.Argument(help="Text or HTML file with the written work")],
    learning_path: Annotated[str, typer.Option("--path", "-p", help="Learning path")],
    strand: Annotated[int, typer.Option("--strand", "-s", help="Strand number (1-4)")],
    rubrics: Annotated[
        Path | None, typer.Option("--rubrics", "-r", help="Rubric JSON (defaults to configured path)")
    ] = None,
) -> None:
    """Grade written work against the strand rubric."""
    if not artifact.exists():
        console.print(f"[red]File not found: {artifact}[/]")
        raise typer.Exit(1)

    try:
        book = load_rubric_book(rubrics or Path(get_settings().rubric_data_path))
    except DatasetError as e:
        console.print(f"[red]✗ {e}[/]")
        raise typer.Exit(1)

    text = artifact.read_text(encoding="utf-8", errors="replace")
    result = RubricEvaluator(book).evaluate(text, learning_path, strand)
    _print_rubric_result(result)


def _print_rubric_result(result: RubricResult) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Component")
    table.add_column("Level", justify="right")
    table.add_row("Keywords", str(result.keyword_level))
    table.add_row("Concepts", str(result.concept_level))
    table.add_row(f"Length ({result.word_count} words)", str(result.length_level))
    table.add_row("Table structure", str(result.structure_level))
    table.add_row("Graph", str(result.image_level))

    console.print(
        Panel(
            f"[bold]Level {result.level}[/] / 8",
            title="Rubric result",
            border_style="green" if result.level >= 6 else "yellow",
        )
    )
    console.print(table)

    matched = [m.label for m in result.matched_keywords + result.matched_concepts]
    if matched:
        console.print(f"[green]Matched:[/] {', '.join(matched)}")
    if result.suggestions:
        console.print("\n[bold]Suggestions[/]")
        for suggestion in result.suggestions:
            console.print(f"  • {suggestion}")


# =============================================================================
# Quiz Command
# =============================================================================


@app.command()
def quiz(
    learning_path: Annotated[str, typer.Option("--path", "-p", help="Learning path")],
    strand: Annotated[int, typer.Option("--strand", "-s", help="Strand number")] = 1,
    level: Annotated[int, typer.Option("--level", "-l", help="Level block (2, 4, 6 or 8)")] = 2,
    learner: Annotated[str, typer.Option("--learner", help="Learner id for saved responses")] = "local",
) -> None:
    """Run one level block in the terminal."""
    try:
        session = AssessmentSession.from_settings(learner_id=learner)
    except DatasetError as e:
        console.print(f"[red]✗ {e}[/]")
        raise typer.Exit(1)

    asyncio.run(_run_quiz(session, learning_path, strand, level))


async def _run_quiz(session: AssessmentSession, learning_path: str, strand: int, level: int) -> None:
    async with session:
        session.progress.subscribe(
            BadgeEarned, lambda e: console.print(f"[bold magenta]🏅 Badge earned: {e.badge}[/]")
        )
        session.progress.subscribe(
            LevelUnlocked, lambda e: console.print(f"[bold green]🔓 Level {e.level} unlocked[/]")
        )

        strand_session = session.strand(learning_path, strand)
        if level not in strand_session.levels:
            console.print(f"[red]No level {level} block for {learning_path} strand {strand}[/]")
            raise typer.Exit(1)

        machine = strand_session.machine(level)
        machine.auto_advance = False
        if not strand_session.is_unlocked(level):
            console.print("[yellow]This level is locked. Complete the previous level first.[/]")
            raise typer.Exit(1)

        console.print(
            Panel(
                f"[bold cyan]{learning_path}[/]\nStrand {strand} · Level {level}\n"
                f"{len(machine.questions)} questions",
                title="Question block",
                border_style="cyan",
            )
        )

        while not machine.is_completed:
            question = machine.current_question
            console.print(f"\n[bold]Question {machine.index + 1}/{len(machine.questions)}[/]")
            answer = _ask(question)
            response = await machine.submit(answer)
            if response is None:
                continue
            _print_feedback(response)

            hint = machine.hint
            if hint is not None and hint.text:
                console.print(f"[dim]Hint: {hint.text}[/]")

            if machine.can_retry and Confirm.ask("Try again?", default=True):
                machine.retry()
                continue

            with console.status("Reading time..."):
                await machine.wait_for_transition()
            machine.advance()

        _print_summary(machine.summary)


def _ask(question: Any) -> Any:
    """Collect an answer in the shape the evaluator for this question kind expects."""
    if isinstance(question, MCQQuestion):
        console.print(question.question)
        for option in question.options:
            console.print(f"  [cyan]{option.id}[/]) {option.text}")
        return Prompt.ask("Your answer", choices=[o.id for o in question.options])

    if isinstance(question, FillBlankQuestion):
        console.print(question.question)
        console.print(f"[italic]{question.text}[/]")
        return {blank.id: Prompt.ask(f"Blank {position}") for position, blank in enumerate(question.blanks, 1)}

    if isinstance(question, MatchClickQuestion):
        console.print(question.question)
        for item in question.right_items:
            console.print(f"  [cyan]{item.id}[/]: {item.text}")
        choices = [item.id for item in question.right_items]
        return {item.id: Prompt.ask(item.text, choices=choices) for item in question.left_items}

    if isinstance(question, ShortAnswerQuestion):
        console.print(question.question)
        if question.min_words:
            console.print(f"[dim]At least {question.min_words} words.[/]")
        return Prompt.ask("Your answer")

    console.print("[yellow]This question could not be loaded.[/]")
    return Prompt.ask("Press enter to continue", default="")


def _print_feedback(response: QuestionResponse) -> None:
    style = "green" if response.is_correct else "red"
    console.print(
        Panel(response.feedback, title=f"Score {response.score}", border_style=style)
    )


def _print_summary(summary: BlockSummary | None) -> None:
    if summary is None:
        return
    table = Table(title="Block complete")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Average", f"{summary.average:.2f}")
    table.add_row("Score", str(summary.score))
    table.add_row("Correct", f"{summary.correct_count}/{summary.total_questions}")
    table.add_row("Incorrect attempts", str(summary.attempts))
    if summary.performance is not None:
        table.add_row("Accuracy", f"{summary.performance.accuracy}%")
        table.add_row("Average time", f"{summary.performance.average_time:.1f}s")
    console.print(table)

    if summary.celebrate:
        console.print("[bold magenta]🎉 Outstanding work![/]")
    if summary.unlocked_level is None and next_level(summary.level) is not None:
        console.print("[yellow]Score 6 or more on average to unlock the next level.[/]")
    if summary.performance is not None:
        for recommendation in summary.performance.recommendations:
            console.print(f"  • {recommendation}")


if __name__ == "__main__":
    app()
