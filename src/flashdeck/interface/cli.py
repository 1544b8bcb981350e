"""flashdeck CLI: practice, stats, known-card and config commands."""

import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Annotated

import typer

from flashdeck.application.practice.progress import project_progress
from flashdeck.application.practice.service import PracticeService
from flashdeck.consts import ENV_PREFIX
from flashdeck.domain.constants import DEFAULT_SERVER_HOST, DEFAULT_SERVER_PORT
from flashdeck.domain.errors import FlashdeckError
from flashdeck.domain.models import CardFilter, PracticeDirection
from flashdeck.domain.practice.session import Outcome, PracticeSession
from flashdeck.interface._common import _resolve_with_overrides, _services, fail

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="flashdeck: flashcard practice sessions with per-deck progress stats.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage flashdeck configuration.")
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

OUTCOME_KEYS = {
    "k": Outcome.KNOW,
    "h": Outcome.HARD,
    "r": Outcome.REPEAT,
}
QUIT_KEYS = {"q", ":q", "quit"}


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    cards_file: Annotated[
        Path | None, typer.Option("--cards-file", "-c", help="YAML file with decks and cards.")
    ] = None,
    backend: Annotated[
        str | None,
        typer.Option(help="Stats backend: memory or sqlite."),
    ] = None,
    db_path: Annotated[Path | None, typer.Option(help="SQLite stats database path.")] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for flashdeck."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {
        "cards_file": cards_file,
        "backend": backend,
        "db_path": db_path,
        "verbose": verbose,
    }


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def decks(ctx: typer.Context):
    """List decks with their known-card progress."""
    practice_service, stats_service = _services(ctx)
    deck_list = practice_service.list_decks()
    if not deck_list:
        typer.secho("No decks found.", fg="yellow")
        return

    for deck in deck_list:
        size = len(practice_service.list_cards(deck.id))
        known = len(stats_service.get_known_card_ids(deck.id))
        percent = stats_service.get_deck_progress_percent(deck.id, size)
        typer.echo(f"{deck.id:>4}  {deck.title}  ({known}/{size} known, {percent}%)")

    overall = stats_service.get_overall_aggregate(d.id for d in deck_list)
    typer.echo(
        f"Total: {overall.sessions_all} sessions ({overall.sessions_today} today), "
        f"{overall.viewed_all} cards viewed ({overall.viewed_today} today)"
    )


@app.command()
def practice(
    ctx: typer.Context,
    deck_id: Annotated[int, typer.Argument(help="Deck to practice.")],
    count: Annotated[
        int | None, typer.Option("--count", "-n", min=1, help="Cards in this session.")
    ] = None,
    random_order: Annotated[
        bool | None,
        typer.Option("--random/--ordered", help="Shuffle cards or keep deck order."),
    ] = None,
    direction: Annotated[
        PracticeDirection | None, typer.Option(help="Which side is the question.")
    ] = None,
    card_filter: Annotated[
        CardFilter | None, typer.Option("--filter", help="Cards to include by known status.")
    ] = None,
):
    """[bold green]Practice[/bold green] a deck interactively."""
    practice_service, _ = _services(ctx)

    try:
        deck = practice_service.load_deck(deck_id)
        if deck is None:
            fail(f"Deck not found: {deck_id}")

        session = practice_service.start_session(
            deck_id,
            count=count,
            random_order=random_order,
            direction=direction,
            card_filter=card_filter,
        )
        typer.secho(f"=== {deck.title} ===", bold=True)

        while True:
            if session.is_complete:
                typer.secho("Nothing to practice: no cards match the selection.", fg="yellow")
                return
            if not _run_session(session):
                logger.info(
                    f"Session abandoned: deck_id={deck_id}, "
                    f"answered={session.viewed}/{session.total_cards}"
                )
                typer.secho("Session abandoned; nothing recorded.", fg="yellow")
                return

            practice_service.record_session(session)
            _print_summary(practice_service, session)

            failed = practice_service.get_failed_cards(deck_id, session.failed_card_ids)
            if not failed or not typer.confirm(f"Repeat {len(failed)} failed cards?", default=False):
                return
            session = practice_service.start_repeat_session(
                deck_id, failed, direction=session.direction
            )
    except FlashdeckError as e:
        fail(str(e))


def _run_session(session: PracticeSession) -> bool:
    """Drive one session to completion. Returns False if the user quit."""
    session.start_question()
    while not session.is_complete:
        progress = project_progress(session)
        typer.echo(f"\n[{progress.current}/{progress.total_cards}] {session.question_text()}")
        answer = typer.prompt("Enter to reveal, q to quit", default="", show_default=False)
        if answer.strip().lower() in QUIT_KEYS:
            return False

        session.reveal()
        card = session.current_card()
        typer.secho(f"  {session.answer_text()}", fg="cyan")
        if card.example:
            typer.echo(f"  e.g. {card.example}")

        while True:
            choice = typer.prompt("(k)now / (h)ard / (r)epeat / (q)uit").strip().lower()
            if choice in QUIT_KEYS:
                return False
            outcome = OUTCOME_KEYS.get(choice)
            if outcome is not None:
                session.mark(outcome)
                break
            typer.secho("Invalid choice.", fg="yellow")
    return True


def _print_summary(practice_service: PracticeService, session: PracticeSession) -> None:
    progress = project_progress(session)
    metrics = practice_service.completion_metrics(session)
    typer.secho("\nSession complete!", fg="green")
    typer.echo(
        f"Viewed: {progress.total_viewed}  Know: {progress.correct}  "
        f"Hard: {progress.hard}  Repeat: {progress.repeat}"
    )
    typer.echo(f"Time: {metrics.session_minutes} min  Avg answer: {metrics.avg_seconds}s")


@app.command()
def stats(
    ctx: typer.Context,
    deck_id: Annotated[int, typer.Argument(help="Deck to report on.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show daily stats and known cards for a deck."""
    _, stats_service = _services(ctx)
    try:
        records = stats_service.get_daily_stats(deck_id)
        known = sorted(stats_service.get_known_card_ids(deck_id))
        aggregate = stats_service.get_deck_aggregate(deck_id)
    except FlashdeckError as e:
        fail(str(e))

    if json_output:
        daily = [
            {**asdict(r), "date": r.date.isoformat(), "avg_delay_ms": r.avg_delay_ms}
            for r in records
        ]
        typer.echo(
            json.dumps(
                {
                    "deck_id": deck_id,
                    "daily": daily,
                    "known_card_ids": known,
                    "aggregate": asdict(aggregate),
                },
                indent=2,
            )
        )
        return

    typer.echo(
        f"Sessions: {aggregate.sessions_all} (today {aggregate.sessions_today})  "
        f"Viewed: {aggregate.viewed_all} (today {aggregate.viewed_today})  "
        f"Known cards: {len(known)}"
    )
    if not records:
        typer.secho("No sessions recorded yet.", fg="yellow")
        return

    header = f"{'Date':<10} {'Sess':>5} {'Viewed':>6} {'Know':>5} {'Hard':>5} {'Rep':>5} {'Min':>5}"
    typer.echo(header)
    typer.echo("-" * len(header))
    for r in records:
        minutes = r.total_duration_ms // 60000
        typer.echo(
            f"{r.date.isoformat():<10} {r.sessions:>5} {r.viewed:>6} {r.correct:>5} "
            f"{r.hard:>5} {r.repeat:>5} {minutes:>5}"
        )


@app.command()
def known(
    ctx: typer.Context,
    deck_id: Annotated[int, typer.Argument(help="Deck id.")],
    card_id: Annotated[int, typer.Argument(help="Card id.")],
    unknown: Annotated[
        bool, typer.Option("--unknown", help="Mark the card as not known instead.")
    ] = False,
    toggle: Annotated[bool, typer.Option("--toggle", help="Flip the current status.")] = False,
):
    """Mark a card as known (or unknown) in a deck."""
    _, stats_service = _services(ctx)
    try:
        if toggle:
            status = stats_service.toggle_card_known(deck_id, card_id)
        else:
            status = not unknown
            stats_service.set_card_known(deck_id, card_id, status)
    except FlashdeckError as e:
        fail(str(e))
    typer.echo(f"Card {card_id} in deck {deck_id}: {'known' if status else 'unknown'}")


@app.command()
def reset(
    ctx: typer.Context,
    deck_id: Annotated[int, typer.Argument(help="Deck whose progress to reset.")],
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Bypass confirmation.")
    ] = False,
):
    """Forget all known cards of a deck. Session history is kept."""
    _, stats_service = _services(ctx)
    if not force and not typer.confirm(f"Reset known cards for deck {deck_id}?", default=False):
        typer.echo("Reset cancelled.")
        raise typer.Exit(1)
    try:
        cleared = stats_service.reset_deck_progress(deck_id)
    except FlashdeckError as e:
        fail(str(e))
    typer.secho(f"Cleared {cleared} known cards from deck {deck_id}.", fg="green")


@app.command()
def serve(
    ctx: typer.Context,
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = DEFAULT_SERVER_PORT,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = DEFAULT_SERVER_HOST,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API server."""
    import uvicorn

    config = _resolve_with_overrides(ctx)
    # The server resolves its own config (in a child process with --reload),
    # so global options travel as FLASHDECK_* variables.
    for key, value in ctx.obj["overrides"].items():
        if value is not None:
            os.environ[f"{ENV_PREFIX}{key.upper()}"] = str(getattr(config, key))
    logger.info(f"Serving decks from {config.cards_file} with the {config.backend} backend")

    uvicorn.run("flashdeck.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _resolve_with_overrides(ctx)
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))


@config_app.command("path")
def config_path():
    """Print the config file locations, in lookup order."""
    from flashdeck.application.config import config_file_candidates

    for candidate in config_file_candidates():
        marker = "*" if candidate.exists() else " "
        typer.echo(f"{marker} {candidate}")

