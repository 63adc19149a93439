#!/usr/bin/env python3
"""
NoteSync CLI.

Primary entry point for local note operations and synchronization.
Use --service to select what to run. The CLI is the main context: it runs
sync cycles itself and asks on the terminal when the remote account changed.

Usage:
    python cli.py --help
    python cli.py --service notes
    python cli.py --service new --content "# Groceries"
    python cli.py --service sync --verbose
    python cli.py --service sign-in --token <refresh-token>
"""

import asyncio
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import click
import structlog

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from notesync.backend.core.exceptions import ApplicationError
from notesync.backend.core.logging import get_logger, setup_logging

SYNC_SERVICES = {"sync", "status", "sign-out", "new", "edit", "delete", "import", "color"}


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


@click.command()
@click.option(
    "--service", "-s",
    type=click.Choice([
        "info", "config", "notes", "search", "new", "edit", "delete", "import", "export", "color",
        "sync", "status", "sign-in", "sign-out",
    ]),
    default="info",
    help="Service or command to run.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output (INFO level logging).",
)
@click.option(
    "--debug", "-d",
    is_flag=True,
    help="Enable debug output (DEBUG level logging).",
)
@click.option(
    "--note-id", "-n",
    multiple=True,
    help="Note id (edit, delete, export, color). Repeat to delete several notes.",
)
@click.option(
    "--content", "-c",
    default=None,
    help="Markdown content (new, edit).",
)
@click.option(
    "--file", "-f",
    "file_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Markdown file to import.",
)
@click.option(
    "--query", "-q",
    default=None,
    help="Text to look for in note titles and content (search).",
)
@click.option(
    "--color",
    default=None,
    help="Hex color such as #fef3c7 (color).",
)
@click.option(
    "--output", "-o",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
    help="Directory to write exported markdown to (export).",
)
@click.option(
    "--token",
    default=None,
    help="Refresh token for sign-in. Prompted for when omitted.",
)
@click.option(
    "--on-account-switch",
    type=click.Choice(["ask", "switch", "merge"]),
    default="ask",
    help="Answer to the account-changed question (ask on the terminal by default).",
)
def main(
    service: str,
    verbose: bool,
    debug: bool,
    note_id: tuple[str, ...],
    content: str | None,
    file_path: Path | None,
    query: str | None,
    color: str | None,
    output_dir: Path,
    token: str | None,
    on_account_switch: str,
) -> None:
    """
    NoteSync CLI.

    Use --service to select what to run.

    \b
    Examples:
        python cli.py --service notes
        python cli.py --service new --content "# Groceries"
        python cli.py --service edit -n 3f2a9c1b7d4e --content "# Groceries\\n- milk"
        python cli.py --service delete -n 3f2a9c1b7d4e -n 8e1d0a2b4c6f
        python cli.py --service search --query groceries
        python cli.py --service import --file todo.md
        python cli.py --service export -n 3f2a9c1b7d4e --output ~/Desktop
        python cli.py --service color -n 3f2a9c1b7d4e --color "#dbeafe"
        python cli.py --service sign-in --token <refresh-token>
        python cli.py --service sync --verbose
        python cli.py --service status
        python cli.py --service config
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console")

    structlog.contextvars.bind_contextvars(source="cli")

    logger = get_logger(__name__)

    logger.debug("CLI invoked", extra={"service": service, "log_level": log_level})

    if service == "info":
        show_info(logger)
    elif service == "config":
        show_config(logger)
    else:
        handler = {
            "notes": list_notes,
            "search": search_notes,
            "new": new_note,
            "edit": edit_note,
            "delete": delete_notes,
            "import": import_note,
            "export": export_note,
            "color": set_color,
            "sync": sync_now,
            "status": show_status,
            "sign-in": sign_in,
            "sign-out": sign_out,
        }[service]
        options = {
            "note_ids": list(note_id),
            "content": content,
            "file_path": file_path,
            "query": query,
            "color": color,
            "output_dir": output_dir,
            "token": token,
        }
        try:
            asyncio.run(_run(logger, service, handler, on_account_switch, options))
        except ApplicationError as e:
            logger.error("Command failed", extra={"service": service, "error": e.message, "code": e.code})
            click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
            sys.exit(1)


# =============================================================================
# Application wiring
# =============================================================================


def _make_prompt(on_account_switch: str):
    from notesync.backend.sync.prompt import ClickConfirmationPrompt, FixedAnswerPrompt

    if on_account_switch == "switch":
        return FixedAnswerPrompt(True)
    if on_account_switch == "merge":
        return FixedAnswerPrompt(False)
    return ClickConfirmationPrompt()


@asynccontextmanager
async def _app(on_account_switch: str, resume_session: bool) -> AsyncIterator[tuple]:
    """Open storage and the sync stack; wait for background syncs on exit."""
    from notesync.backend.core.database import dispose_engine
    from notesync.backend.services.note import NoteService
    from notesync.backend.storage import select_storage
    from notesync.backend.sync.service import create_sync_service

    storage = await select_storage()
    sync = await create_sync_service(storage, _make_prompt(on_account_switch))
    try:
        await sync.start()
        if resume_session:
            await sync.init_sync(run_cycle=False)
        notes = NoteService(storage.notes, on_mutation=sync.request_background_sync)
        yield storage, sync, notes
    finally:
        await sync.close()
        await storage.notes.close()
        await dispose_engine()


async def _run(logger, service: str, handler, on_account_switch: str, options: dict) -> None:
    resume = service in SYNC_SERVICES
    async with _app(on_account_switch, resume_session=resume) as (storage, sync, notes):
        await handler(logger, storage=storage, sync=sync, notes=notes, **options)


# =============================================================================
# Notes
# =============================================================================


async def list_notes(logger, notes, **_) -> None:
    """List live notes, most recently updated first."""
    items = await notes.get_notes()
    if not items:
        click.echo("No notes.")
        return
    for note in items:
        click.echo(f"{note.id}  {note.updated_at:%Y-%m-%d %H:%M}  {note.title}")
    logger.debug("Notes listed", extra={"count": len(items)})


async def search_notes(logger, notes, query: str | None, **_) -> None:
    """List live notes matching --query."""
    if not query:
        raise click.UsageError("search needs --query")
    items = await notes.search_notes(query)
    if not items:
        click.echo(f"No notes match '{query}'.")
        return
    for note in items:
        click.echo(f"{note.id}  {note.updated_at:%Y-%m-%d %H:%M}  {note.title}")
    logger.debug("Notes searched", extra={"query": query, "count": len(items)})


async def new_note(logger, notes, content: str | None, **_) -> None:
    note = await notes.create_note()
    if content:
        note = await notes.save_note(note.model_copy(update={"content": content}))
    click.echo(f"Created {note.id}: {note.title}")


async def edit_note(logger, notes, note_ids: list[str], content: str | None, **_) -> None:
    if len(note_ids) != 1 or content is None:
        raise click.UsageError("edit needs exactly one --note-id and --content")
    note = await notes.get_note(note_ids[0])
    if note is None:
        from notesync.backend.core.exceptions import NotFoundError

        raise NotFoundError(f"Note {note_ids[0]} not found")
    saved = await notes.save_note(note.model_copy(update={"content": content}))
    click.echo(f"Saved {saved.id}: {saved.title}")


async def delete_notes(logger, notes, note_ids: list[str], **_) -> None:
    if not note_ids:
        raise click.UsageError("delete needs at least one --note-id")
    count = await notes.delete_notes(note_ids)
    click.echo(f"Deleted {count} note(s).")


async def import_note(logger, notes, file_path: Path | None, **_) -> None:
    if file_path is None:
        raise click.UsageError("import needs --file")
    note = await notes.import_markdown(file_path.read_text(encoding="utf-8"))
    click.echo(f"Imported {file_path.name} as {note.id}: {note.title}")


async def export_note(logger, notes, note_ids: list[str], output_dir: Path, **_) -> None:
    if len(note_ids) != 1:
        raise click.UsageError("export needs exactly one --note-id")
    export = await notes.export_markdown(note_ids[0])
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / export.filename
    target.write_text(export.content, encoding="utf-8")
    click.echo(f"Exported {note_ids[0]} to {target}")


async def set_color(logger, notes, note_ids: list[str], color: str | None, **_) -> None:
    if len(note_ids) != 1 or color is None:
        raise click.UsageError("color needs exactly one --note-id and --color")
    note = await notes.set_color(note_ids[0], color)
    click.echo(f"Color of {note.id} set to {note.color}")


# =============================================================================
# Sync
# =============================================================================


async def sync_now(logger, sync, **_) -> None:
    if not sync.is_sync_enabled():
        click.echo("Sync is not enabled. Sign in first: python cli.py --service sign-in")
        return
    report = await sync.sync_now()
    click.echo(f"Sync {sync.status}: {report.outcome} ({report.uploaded} notes uploaded)")


async def show_status(logger, storage, sync, notes, **_) -> None:
    all_notes = await storage.notes.load_all()
    tombstones = sum(1 for note in all_notes if note.deleted)
    identity = await sync.get_user_info() if sync.is_sync_enabled() else None

    click.echo("Sync Status")
    click.echo("=" * 40)
    click.echo(f"Storage backend: {storage.notes.backend_name}")
    click.echo(f"Live notes:      {len(all_notes) - tombstones}")
    click.echo(f"Tombstones:      {tombstones}")
    click.echo(f"Sync enabled:    {sync.is_sync_enabled()}")
    click.echo(f"Signed in as:    {identity or '-'}")
    click.echo(f"Last synced as:  {await sync.session.last_synced_identity() or '-'}")


async def sign_in(logger, sync, token: str | None, **_) -> None:
    credential = token or click.prompt("Refresh token", hide_input=True)
    report = await sync.sign_in(credential)
    click.echo(f"Signed in. Sync {sync.status}: {report.outcome}")


async def sign_out(logger, sync, **_) -> None:
    await sync.sign_out()
    click.echo("Signed out.")


# =============================================================================
# Info
# =============================================================================


def show_config(logger) -> None:
    """Display loaded configuration."""
    click.echo("Application Configuration:\n")

    try:
        from notesync.backend.core.config import get_app_config

        app_config = get_app_config()
        sections = {
            "Application": app_config.application,
            "Database": app_config.database,
            "Storage": app_config.storage,
            "Logging": app_config.logging,
            "Feature Flags": app_config.features,
            "Sync": app_config.sync,
            "Events": app_config.events,
        }

        for title, schema in sections.items():
            click.echo(f"{title} Settings (from YAML):")
            click.echo("-" * 40)
            for key, value in schema.model_dump().items():
                if isinstance(value, dict):
                    click.echo(f"  {key}:")
                    for k, v in value.items():
                        click.echo(f"    {k}: {v}")
                else:
                    click.echo(f"  {key}: {value}")
            click.echo()

        logger.info("Configuration displayed successfully")

    except (ValueError, FileNotFoundError) as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        click.echo(click.style(f"Error loading configuration: {e}", fg="red"))
        sys.exit(1)


def show_info(logger) -> None:
    """Display application information."""
    click.echo("NoteSync")
    click.echo("=" * 40)

    try:
        from notesync.backend.core.config import get_app_config
        app_config = get_app_config()
        click.echo(f"Name: {app_config.application.name}")
        click.echo(f"Version: {app_config.application.version}")
        click.echo(f"Description: {app_config.application.description}")
    except (ValueError, FileNotFoundError) as e:
        logger.error(
            "Failed to load application configuration",
            extra={"error": str(e)},
        )
        click.echo(
            click.style(
                "Error: Could not load application.yaml configuration.",
                fg="red",
            ),
            err=True,
        )
        sys.exit(1)

    click.echo()
    click.echo("Services (--service):")
    click.echo("  notes          List notes")
    click.echo("  search         Find notes by title or content (--query)")
    click.echo("  new            Create a note (--content)")
    click.echo("  edit           Replace a note's content (--note-id, --content)")
    click.echo("  delete         Delete notes (--note-id, repeatable)")
    click.echo("  import         Import a markdown file (--file)")
    click.echo("  export         Write a note to <title>.md (--note-id, --output)")
    click.echo("  color          Change a note's color (--note-id, --color)")
    click.echo("  sync           Sync with the remote store now")
    click.echo("  status         Show sync status")
    click.echo("  sign-in        Sign in to the remote store (--token)")
    click.echo("  sign-out       Sign out of the remote store")
    click.echo("  config         Display configuration")
    click.echo("  info           Show this information")
    click.echo()
    click.echo("Options:")
    click.echo("  --verbose, -v  Enable INFO level logging")
    click.echo("  --debug, -d    Enable DEBUG level logging")
    click.echo("  --on-account-switch [ask|switch|merge]")
    click.echo()
    click.echo("Examples:")
    click.echo("  python cli.py --service new --content \"# Groceries\"")
    click.echo("  python cli.py --service sync --verbose")
    click.echo("  python cli.py --service delete -n 3f2a9c1b7d4e")

    logger.debug("Info displayed")


if __name__ == "__main__":
    main()
