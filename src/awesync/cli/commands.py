"""CLI command implementations"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import Session, SQLModel

from awesync.config import Settings, load_config
from awesync.core.format import format_markdown
from awesync.core.lint import lint_markdown
from awesync.core.models import ConflictStrategy, ParsedSection
from awesync.core.parse import parse_file
from awesync.core.sync import ListNotFoundError, export_list, import_list
from awesync.crud.database import init_db, make_engine
from awesync.crud.lists import create_list, get_all_lists, get_list
from awesync.crud.resources import get_approved_entries
from awesync.crud.sync_state import SyncInProgressError, cancel_job, get_history, get_status
from awesync.gateway import GatewayError, GitHubGateway


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config and configure logging, with standard CLI error handling."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    return settings


def _engine(settings: Settings):
    engine = make_engine(settings.db_url)
    init_db(engine)
    return engine


def _gateway(settings: Settings) -> GitHubGateway:
    return GitHubGateway(settings.github_api_url, settings.github_token, settings.request_timeout)


def _echo_issues(label: str, issues: list) -> None:
    for issue in issues:
        typer.echo(f"  {label} line {issue.line} [{issue.rule}] {issue.message}")


def _echo_section(section: ParsedSection, indent: int = 0) -> None:
    typer.echo(f"{'  ' * indent}{'#' * section.level} {section.name} ({len(section.resources)})")
    for child in section.children:
        _echo_section(child, indent + 1)


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize database schema. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        SQLModel.metadata.drop_all(engine)
        typer.echo("Existing data cleared.")
    init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def add_list_cmd(
    owner: Annotated[str, typer.Argument(help="Repository owner")],
    repo: Annotated[str, typer.Argument(help="Repository name")],
    branch: Annotated[Optional[str], typer.Option("--branch", help="Branch to read and commit")] = None,
    path: Annotated[Optional[str], typer.Option("--path", help="List file path in the repo")] = None,
    name: Annotated[Optional[str], typer.Option("--name", help="List title; defaults to the repo name")] = None,
    description: Annotated[Optional[str], typer.Option("--description", help="Blockquote used on export")] = None,
    ):
    """Track a markdown list in a remote repository."""
    settings = _settings()
    with Session(_engine(settings)) as session:
        lst = create_list(
            session, owner, repo, name=name, description=description,
            branch=branch or settings.default_branch,
            file_path=path or settings.default_file_path,
        )
        session.commit()
        typer.echo(f"Added list {lst.id}: {lst.repo_owner}/{lst.repo_name}:{lst.file_path}@{lst.branch}")


def lists_cmd():
    """List tracked lists."""
    settings = _settings()
    with Session(_engine(settings)) as session:
        lists = get_all_lists(session)
        if not lists:
            typer.echo("No lists tracked. Run 'awesync add-list OWNER REPO' first.")
            raise typer.Exit(1)
        for lst in lists:
            synced = lst.last_sync_at.isoformat(timespec="seconds") if lst.last_sync_at else "never"
            typer.echo(f"{lst.id}\t{lst.name}\t{lst.repo_owner}/{lst.repo_name}:{lst.file_path}\tlast sync: {synced}")


def import_cmd(
    list_id: Annotated[int, typer.Argument(help="Tracked list id")],
    strategy: Annotated[ConflictStrategy, typer.Option("--strategy", help="What to do with URLs already in the catalog")] = ConflictStrategy.skip,
    auto_approve: Annotated[bool, typer.Option("--auto-approve", help="Approve new resources immediately")] = False,
    ):
    """Import resources from a tracked list into the catalog."""
    settings = _settings()
    try:
        with Session(_engine(settings)) as session:
            result = import_list(session, _gateway(settings), list_id, strategy, auto_approve)
    except (ListNotFoundError, SyncInProgressError) as e:
        _fail(str(e))
    except Exception as e:
        _fail("Import failed", e)

    for failure in result.errors:
        typer.echo(f"  error: {failure.url or '-'}: {failure.error}", err=True)
    if not result.success:
        _fail(f"Import failed (history {result.history_id})")
    typer.echo(
        f"Import complete - {result.added} added, {result.updated} updated, "
        f"{result.skipped} skipped, {result.conflicts} conflicts, {len(result.errors)} errors"
    )


def export_cmd(
    list_id: Annotated[int, typer.Argument(help="Tracked list id")],
    ):
    """Format approved resources, lint, and commit them to a tracked list."""
    settings = _settings()
    try:
        with Session(_engine(settings)) as session:
            result = export_list(session, _gateway(settings), list_id, settings.default_description)
    except (ListNotFoundError, SyncInProgressError) as e:
        _fail(str(e))
    except Exception as e:
        _fail("Export failed", e)

    if not result.success:
        reason = f"{result.lint_errors} lint error(s)" if result.lint_errors else "commit failed"
        _fail(f"Export failed: {reason} (history {result.history_id})")
    typer.echo(
        f"Export complete - {result.resource_count} resources, {result.category_count} categories, "
        f"commit {result.commit_sha}"
    )


def preview_cmd(
    list_id: Annotated[int, typer.Argument(help="Tracked list id")],
    out: Annotated[Optional[Path], typer.Option("--out", help="Write markdown here instead of stdout")] = None,
    ):
    """Render the markdown an export would commit, without committing."""
    settings = _settings()
    with Session(_engine(settings)) as session:
        lst = get_list(session, list_id)
        if lst is None:
            _fail(f"Awesome list {list_id} not found")
        formatted = format_markdown(
            get_approved_entries(session), lst.name, lst.description or settings.default_description,
        )
    if out:
        out.write_text(formatted.markdown, encoding="utf-8")
        typer.echo(f"Wrote {formatted.resource_count} resources to {out}")
    else:
        typer.echo(formatted.markdown)


def status_cmd(
    list_id: Annotated[int, typer.Argument(help="Tracked list id")],
    ):
    """Show whether a sync job is running for a list."""
    settings = _settings()
    with Session(_engine(settings)) as session:
        status, entry = get_status(session, list_id)
        typer.echo(status)
        if entry is not None and entry.error:
            typer.echo(f"  {entry.error}")


def cancel_cmd(
    list_id: Annotated[int, typer.Argument(help="Tracked list id")],
    ):
    """Mark a list's running job as cancelled so a new one may start."""
    settings = _settings()
    with Session(_engine(settings)) as session:
        entry = cancel_job(session, list_id)
        session.commit()
    if entry is None:
        typer.echo(f"No job in progress for list {list_id}.")
        raise typer.Exit(1)
    typer.echo(f"Cancelled queue entry {entry.id}.")


def history_cmd(
    list_id: Annotated[int, typer.Argument(help="Tracked list id")],
    limit: Annotated[int, typer.Option("--limit", help="Number of rows to show")] = 10,
    ):
    """Show recent import/export runs for a list."""
    settings = _settings()
    with Session(_engine(settings)) as session:
        rows = get_history(session, list_id, limit)
        if not rows:
            typer.echo(f"No history for list {list_id}.")
            raise typer.Exit(1)
        for h in rows:
            typer.echo(
                f"{h.id}\t{h.created_at.isoformat(timespec='seconds')}\t{h.action.value}\t{h.status.value}\t"
                f"+{h.items_added} ~{h.items_updated} ={h.items_skipped} !{h.conflicts}\t"
                f"{len(h.error_log)} error(s)"
            )


def parse_cmd(
    path: Annotated[Path, typer.Argument(exists=True, readable=True, help="Markdown file to parse")],
    ):
    """Print the section tree and resource count found in a markdown file."""
    result = parse_file(path)
    typer.echo(f"Title: {result.title or '-'}")
    typer.echo(f"Description: {result.description or '-'}")
    for section in result.sections:
        _echo_section(section)
    typer.echo(f"{len(result.resources)} resource(s)")


def lint_cmd(
    path: Annotated[Path, typer.Argument(exists=True, readable=True, help="Markdown file to lint")],
    ):
    """Check a markdown file against the list structure rules. Exits 1 on errors."""
    result = lint_markdown(path.read_text(encoding="utf-8"))
    _echo_issues("error", result.errors)
    _echo_issues("warning", result.warnings)
    typer.echo(f"{len(result.errors)} error(s), {len(result.warnings)} warning(s)")
    if not result.valid:
        raise typer.Exit(1)


def search_cmd(
    query: Annotated[str, typer.Argument(help="Search terms")],
    limit: Annotated[int, typer.Option("--limit", help="Max results")] = 20,
    ):
    """Search GitHub for awesome lists."""
    settings = _settings()
    try:
        results = _gateway(settings).search_awesome_lists(query, limit)
    except GatewayError as e:
        _fail("Search failed", e)
    for r in results:
        typer.echo(f"{r.full_name}\t{r.stars}\t{r.description or ''}")
