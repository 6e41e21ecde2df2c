"""CLI entry point for wmtcheck."""

import asyncio
import json
import logging

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv()

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from wmtcheck import questions
from wmtcheck.analyzers.pipeline import CheckPipeline
from wmtcheck.config import Settings
from wmtcheck.errors import WmtError
from wmtcheck.models.schemas import Criterion, Dependency, DependencyResults, Status

app = typer.Typer(
    help=(
        "An implementation of Adam Johnson's \"The Well-Maintained Test\". "
        "Checks whether crates pass all 12 questions (or a specific one)."
    )
)

console = Console()
err_console = Console(stderr=True)

STATUS_STYLES = {
    Status.PASS: "green",
    Status.PARTIAL: "yellow",
    Status.FAIL: "red",
    Status.UNSUPPORTED: "dim",
}


def _setup_logging(verbose: bool) -> None:
    if not verbose:
        return
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def _validate_question(value: str | None) -> str | None:
    if value is None or value.lower() in questions.ALL_QUESTIONS:
        return value
    try:
        numbers = questions.question_numbers(Settings.from_env().questions_path)
    except WmtError as e:
        raise typer.BadParameter(str(e))
    if value not in numbers:
        raise typer.BadParameter(f"must be one of {', '.join(numbers)}")
    return value


@app.command()
def check(
    dependencies: list[str] = typer.Argument(
        ...,
        help="Crate names, paths to Cargo.toml manifests, or GitHub URLs to check",
    ),
    question: str | None = typer.Option(
        None, "--question", "-q", help="Check a specific question", callback=_validate_question
    ),
    as_json: bool = typer.Option(False, "--json", "-j", help="Output the result in JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Use verbose output"),
) -> None:
    """Run the checks for a dependency or a list of dependencies."""
    _setup_logging(verbose)
    asyncio.run(_check(dependencies, question, as_json))


async def _check(identifiers: list[str], question: str | None, as_json: bool) -> None:
    """Async implementation of check."""
    settings = Settings.from_env()
    skipped: list[str] = []

    def on_skip(dependency: Dependency, reason: str) -> None:
        skipped.append(reason)

    async with CheckPipeline(settings=settings) as pipeline:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=err_console,
            transient=True,
        ) as progress:
            task = progress.add_task("Resolving dependencies...", total=None)
            try:
                dependencies = await pipeline.resolve_dependencies(identifiers)
            except WmtError as e:
                err_console.print(f"[red]{e}[/red]")
                raise typer.Exit(1)

            progress.update(task, description=f"Checking {len(dependencies)} dependencies...")
            try:
                matrix = await pipeline.evaluate(dependencies, question, on_skip=on_skip)
            except WmtError as e:
                err_console.print(f"[red]{e}[/red]")
                raise typer.Exit(1)

    for reason in skipped:
        err_console.print(f"[dim yellow]{reason}[/dim yellow]")

    if as_json:
        console.print_json(json.dumps([entry.model_dump(mode="json") for entry in matrix]))
    else:
        console.print(_results_table(matrix))


def _results_table(matrix: list[DependencyResults]) -> Table:
    table = Table(show_lines=True)
    table.add_column("Dependency", style="cyan")
    table.add_column("Question", max_width=50)
    table.add_column("Status")
    table.add_column("Explanation", max_width=60)

    for entry in matrix:
        for result in entry.results:
            style = STATUS_STYLES[result.status]
            table.add_row(
                entry.dependency.label,
                f"{result.number}. {result.question}",
                f"[{style}]{result.status.value}[/{style}]",
                result.explanation,
            )
    return table


@app.command()
def question(
    number: str | None = typer.Argument(
        None, help="Describe a specific question", callback=_validate_question
    ),
    list_questions: bool = typer.Option(False, "--list-questions", "-l", help="List the questions"),
    as_json: bool = typer.Option(False, "--json", "-j", help="Output the result in JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Use verbose output"),
) -> None:
    """Show the available questions or a specific one."""
    _setup_logging(verbose)
    if number is None and not list_questions:
        console.print("Pass a question number or --list-questions.")
        raise typer.Exit(1)

    settings = Settings.from_env()
    try:
        if list_questions or number.lower() in questions.ALL_QUESTIONS:
            selected = questions.list_questions(settings.questions_path)
        else:
            selected = [questions.describe(number, settings.questions_path)]
    except WmtError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps([criterion.model_dump(mode="json") for criterion in selected]))
    else:
        console.print(_questions_table(selected))


def _questions_table(criteria: list[Criterion]) -> Table:
    table = Table(show_lines=True)
    table.add_column("Number", style="dim", width=6)
    table.add_column("Question", style="cyan")
    table.add_column("Explanation")

    for criterion in criteria:
        table.add_row(criterion.number, criterion.question, criterion.explanation)
    return table


@app.command()
def version() -> None:
    """Show version information."""
    from wmtcheck import __version__

    console.print(f"wmtcheck v{__version__}")


if __name__ == "__main__":
    app()
