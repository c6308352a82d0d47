"""Retain CLI: study commands, queries and configuration."""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable
from pathlib import Path
from typing import Annotated, TypeVar

import typer

from retain.application.config import resolve_config
from retain.domain.errors import InvalidInputError, RetainError
from retain.interface._common import _service_from_ctx

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="retain: spaced-repetition study tracker.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage retain configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def _run(coro: Awaitable[T]) -> T:
    """Run a service coroutine, turning domain errors into exit codes."""
    try:
        return asyncio.run(coro)
    except InvalidInputError as e:
        typer.secho(f"Invalid input: {e}", fg="red", err=True)
        raise typer.Exit(2) from e
    except RetainError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    user: Annotated[
        str | None, typer.Option("--user", "-u", help="User id. Defaults to config.")
    ] = None,
    data: Annotated[
        Path | None, typer.Option("--data", help="Progress store (JSON) path.")
    ] = None,
    catalog: Annotated[
        Path | None, typer.Option("--catalog", help="Content catalog (YAML) path.")
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for retain."""
    ctx.ensure_object(dict)
    ctx.obj["user_id"] = user
    ctx.obj["data_path"] = data
    ctx.obj["catalog_path"] = catalog
    ctx.obj["verbose_bonus"] = verbose


# ---------------------------------------------------------------------------
# Study commands
# ---------------------------------------------------------------------------


@app.command()
def review(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Flashcard id.")],
    quality: Annotated[
        int, typer.Argument(help="Recall quality: 0-2 failed, 3 hard, 4 good, 5 perfect.")
    ],
):
    """[bold green]Review[/bold green] a flashcard and reschedule it."""
    service, user_id = _service_from_ctx(ctx)
    progress = _run(service.record_flashcard_review(user_id, card_id, quality))

    state = progress.flashcards[card_id]
    typer.echo(
        f"{card_id}: next review in {state.interval} day(s) "
        f"on {state.next_review_at.date().isoformat()} (ease {state.ease_factor:.2f})"
    )
    typer.echo(f"Streak: {progress.stats.current_streak} day(s)")


@app.command()
def attempt(
    ctx: typer.Context,
    question_id: Annotated[str, typer.Argument(help="Question id.")],
    correct: Annotated[
        bool | None,
        typer.Option("--correct/--incorrect", help="Whether the answer was right."),
    ] = None,
):
    """Record a practice question attempt."""
    if correct is None:
        typer.secho("Pass --correct or --incorrect.", fg="red", err=True)
        raise typer.Exit(2)
    service, user_id = _service_from_ctx(ctx)
    progress = _run(service.record_question_attempt(user_id, question_id, correct))

    outcome = progress.questions[question_id]
    typer.echo(f"{question_id}: {outcome.correct}/{outcome.attempts} correct")


@app.command()
def unanswer(
    ctx: typer.Context,
    question_id: Annotated[str, typer.Argument(help="Question id.")],
):
    """Reset a question to unanswered."""
    service, user_id = _service_from_ctx(ctx)
    _run(service.mark_unanswered(user_id, question_id))
    typer.echo(f"{question_id}: marked unanswered")


@app.command("study-time")
def study_time(
    ctx: typer.Context,
    minutes: Annotated[float, typer.Argument(help="Minutes studied.")],
):
    """Add study time to the running total."""
    service, user_id = _service_from_ctx(ctx)
    progress = _run(service.record_study_time(user_id, minutes))
    typer.echo(f"Total study time: {progress.stats.total_study_time:g} minutes")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@app.command()
def due(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List flashcards due for review."""
    service, user_id = _service_from_ctx(ctx)
    card_ids = _run(service.due_cards(user_id))

    if json_output:
        typer.echo(json.dumps({"userId": user_id, "due": card_ids}, indent=2))
        return

    if not card_ids:
        typer.secho("Nothing due.", fg="green")
        return
    typer.echo(f"Due cards: {len(card_ids)}")
    for card_id in card_ids:
        typer.echo(f"  {card_id}")


@app.command()
def weak(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show topics with accuracy below the weak-area threshold."""
    service, user_id = _service_from_ctx(ctx)
    areas = _run(service.weak_areas(user_id))

    if json_output:
        typer.echo(json.dumps([a.to_dict() for a in areas], indent=2))
        return

    if not areas:
        typer.secho("No weak areas.", fg="green")
        return
    for area in areas:
        typer.secho(
            f"  {area.topic_id}: {area.accuracy:.1f}% over {area.total_attempts} attempt(s)",
            fg="yellow",
        )


@app.command()
def stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show streaks, mastery and accuracy for the current user."""
    service, user_id = _service_from_ctx(ctx)
    summary = _run(service.summary(user_id))

    if json_output:
        typer.echo(json.dumps(summary.to_dict(), indent=2))
        return

    s = summary.stats
    typer.echo(f"User: {user_id}")
    typer.echo(
        f"Cards: {summary.reviewed_cards}/{summary.total_cards} reviewed, "
        f"{summary.due_cards} due"
    )
    typer.echo(f"Mastered: {s.cards_mastered}")
    typer.echo(f"Streak: {s.current_streak} (longest {s.longest_streak})")
    typer.echo(f"Study time: {s.total_study_time:g} minutes")
    typer.echo(
        f"Questions: {summary.answered_questions} answered, "
        f"{summary.overall_accuracy:.1f}% accuracy"
    )


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@app.command()
def serve(
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    config = resolve_config({"port": port, "host": host})
    uvicorn.run("retain.server:app", host=config.host, port=config.port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
