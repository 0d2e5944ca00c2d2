"""Typer CLI application for plan-driven question generation."""

import logging
from pathlib import Path
from typing import Optional

import typer
from langchain_aws import BedrockEmbeddings
from langchain_core.documents import Document
from langchain_core.vectorstores import InMemoryVectorStore
from pydantic import BaseModel, Field, TypeAdapter, ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from quizgen import __version__
from quizgen.config.settings import get_settings
from quizgen.errors import QuizGenError
from quizgen.gateways.generation import BedrockGenerationGateway
from quizgen.gateways.retrieval import VectorStoreRetrievalGateway
from quizgen.models.events import (
    BatchComplete,
    BatchStarted,
    ErrorEvent,
    QuestionComplete,
    QuestionProgress,
)
from quizgen.models.plan import GenerationPlan
from quizgen.models.quiz import Question, Quiz
from quizgen.models.run import RunSummary
from quizgen.pipeline import QuestionGenerationPipeline
from quizgen.planning.lifecycle import PlanManager
from quizgen.planning.templates import default_registry
from quizgen.storage.memory import InMemoryQuizRepository

app = typer.Typer(
    name="quizgen",
    help="Plan-driven, retrieval-augmented quiz question generator",
    add_completion=False,
)

console = Console()


class SourceChunk(BaseModel):
    """Already-extracted text of a processed material."""

    material_id: str
    text: str = Field(..., min_length=1)


class QuizFile(BaseModel):
    """JSON input of the CLI: a quiz plus the text of its materials."""

    quiz: Quiz
    chunks: list[SourceChunk] = Field(default_factory=list)


def load_quiz_file(path: Path) -> QuizFile:
    try:
        return QuizFile.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as e:
        console.print(f"[red]Error:[/red] Cannot read quiz file {path}: {e}", style="bold")
        raise typer.Exit(code=1)


def build_plan(
    manager: PlanManager,
    quiz: Quiz,
    approach: str,
    total: Optional[int],
    per_objective: Optional[int],
) -> GenerationPlan:
    try:
        return manager.create_plan(
            quiz,
            approach_id=approach,
            total_questions=total,
            questions_per_objective=per_objective,
            created_by="cli",
        )
    except QuizGenError as e:
        console.print(f"[red]Error:[/red] {e}", style="bold")
        raise typer.Exit(code=1)


@app.command()
def templates() -> None:
    """List the published pedagogical approach templates."""
    table = Table(title="Approach Templates", border_style="cyan")
    table.add_column("Approach", style="cyan")
    table.add_column("Question types", style="white")
    table.add_column("Caps per objective", style="white")
    table.add_column("Description", style="white")

    for template in default_registry().list_templates():
        ratios = ", ".join(
            f"{t.value} {template.target_ratios.get(t, 0.0):.0%}" for t in template.ordered_types()
        )
        caps = ", ".join(f"{t.value} <= {c}" for t, c in template.max_per_objective.items())
        table.add_row(template.approach_id, ratios, caps or "-", template.description)

    console.print(table)


@app.command()
def plan(
    quiz_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Quiz JSON file"),
    approach: str = typer.Option("support", "--approach", "-a", help="Approach template id"),
    total: Optional[int] = typer.Option(
        None, "--total", "-n", min=1, help="Exact number of questions for the quiz"
    ),
    per_objective: Optional[int] = typer.Option(
        None, "--per-objective", "-p", min=1, help="Questions per learning objective"
    ),
) -> None:
    """
    Show the question breakdown an approach would produce for a quiz.

    Example:
        quizgen plan biology.json -a assess -n 12
    """
    quiz = load_quiz_file(quiz_file).quiz
    generation_plan = build_plan(PlanManager(), quiz, approach, total, per_objective)
    display_plan(quiz, generation_plan)


@app.command()
def generate(
    quiz_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Quiz JSON file"),
    approach: str = typer.Option("support", "--approach", "-a", help="Approach template id"),
    total: Optional[int] = typer.Option(
        None, "--total", "-n", min=1, help="Exact number of questions for the quiz"
    ),
    per_objective: Optional[int] = typer.Option(
        None, "--per-objective", "-p", min=1, help="Questions per learning objective"
    ),
    output: Path = typer.Option(
        Path("questions.json"), "--output", "-o", help="Where to write the generated questions"
    ),
    stream: Optional[bool] = typer.Option(
        None, "--stream/--no-stream", help="Stream generator text while it is written"
    ),
) -> None:
    """
    Plan, approve and generate questions for a quiz.

    Example:
        quizgen generate biology.json -a gamify -n 20 -o biology-questions.json
    """
    settings = get_settings()
    quiz_data = load_quiz_file(quiz_file)
    quiz = quiz_data.quiz

    quizzes = InMemoryQuizRepository([quiz])
    manager = PlanManager(settings=settings)
    generation_plan = build_plan(manager, quiz, approach, total, per_objective)
    manager.approve(generation_plan.id)
    display_plan(quiz, generation_plan)

    console.print("\n[cyan]Indexing course material...[/cyan]")
    vector_store = InMemoryVectorStore(BedrockEmbeddings(model_id=settings.embedding_model_name))
    if quiz_data.chunks:
        vector_store.add_documents(
            [Document(page_content=c.text, metadata={"material_id": c.material_id}) for c in quiz_data.chunks]
        )

    pipeline = QuestionGenerationPipeline(
        quizzes=quizzes,
        plans=manager,
        retrieval=VectorStoreRetrievalGateway(
            vector_store, fetch_multiplier=settings.retrieval_fetch_multiplier
        ),
        generation=BedrockGenerationGateway(settings=settings, stream=stream),
        settings=settings,
    )

    questions = []
    summary: Optional[RunSummary] = None
    for event in pipeline.stream(quiz.id):
        if isinstance(event, BatchStarted):
            console.print(
                f"[cyan]Generating {event.total_questions} question(s) "
                f"for {event.total_objectives} objective(s)[/cyan]"
            )
        elif isinstance(event, QuestionProgress) and event.status in ("started", "completed", "failed"):
            style = {"started": "white", "completed": "green", "failed": "red"}[event.status]
            console.print(
                f"  [{style}]{event.objective_index}/{event.total_objectives} "
                f"{event.status}[/{style}] {event.objective_id}"
            )
        elif isinstance(event, QuestionComplete):
            questions.append(event.question)
        elif isinstance(event, ErrorEvent):
            console.print(f"  [yellow]![/yellow] {event.message}")
        elif isinstance(event, BatchComplete):
            summary = event.summary
            if not event.success:
                console.print("[red]Error:[/red] Generation run failed.", style="bold")
                raise typer.Exit(code=1)

    output.write_bytes(TypeAdapter(list[Question]).dump_json(questions, indent=2))

    if summary is not None:
        display_summary(summary)
    console.print(f"\n[green]✓[/green] Wrote {len(questions)} question(s) to: {output}")


@app.command()
def info() -> None:
    """Display information about the question generator."""
    settings = get_settings()
    info_text = f"""
[bold cyan]quizgen[/bold cyan]
Version: {__version__}

[bold]Pipeline:[/bold]
  • Approach templates - support, assess, gamify
  • Distribution planner - exact totals, per-objective coverage and caps
  • Plan lifecycle - draft, approve, edit, used
  • Retrieval - objective-scoped course material search
  • Generation - one batch per learning objective

[bold]Model:[/bold] {settings.model_name} (AWS Bedrock)
[bold]Embeddings:[/bold] {settings.embedding_model_name}
    """
    console.print(Panel(info_text, title="quizgen Info", border_style="cyan"))


def display_plan(quiz: Quiz, generation_plan: GenerationPlan) -> None:
    """Display a plan's per-objective breakdown and quiz-wide distribution."""
    table = Table(
        title=f"Plan: {generation_plan.approach_id} ({generation_plan.total_questions} questions)",
        border_style="cyan",
    )
    table.add_column("Objective", style="cyan")
    table.add_column("Questions", style="white")
    table.add_column("Total", style="white", justify="right")

    for entry in generation_plan.breakdown:
        objective = quiz.get_objective(entry.objective_id)
        cells = ", ".join(f"{c.count} {c.type.value}" for c in entry.type_counts if c.count)
        table.add_row(objective.text if objective else entry.objective_id, cells, str(entry.total))

    console.print()
    console.print(table)

    distribution = ", ".join(
        f"{d.type.value} {d.total_count} ({d.percentage}%)" for d in generation_plan.distribution
    )
    console.print(f"[bold]Distribution:[/bold] {distribution}")


def display_summary(summary: RunSummary) -> None:
    """Display the counts of a finished generation run."""
    table = Table(title="Generation Summary", border_style="green")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    generated = f"{summary.total_generated}/{summary.total_requested}"
    if summary.total_generated < summary.total_requested:
        generated = f"[yellow]{generated}[/yellow]"
    table.add_row("Questions", generated)
    table.add_row("Objectives", f"{summary.processed_objectives}/{summary.total_objectives}")
    if summary.failed_objectives:
        table.add_row("Failed objectives", f"[red]{summary.failed_objectives}[/red]")
    table.add_row("Errors", str(summary.error_count))
    table.add_row("Warnings", str(summary.warning_count))
    table.add_row("Materials used", str(summary.materials_used))
    table.add_row("Duration", f"{summary.duration_seconds:.1f}s")

    console.print()
    console.print(table)


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """
    quizgen - Generate quiz questions from learning objectives and course material.
    """
    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


if __name__ == "__main__":
    app()
