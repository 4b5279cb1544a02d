"""Import/export orchestration between tracked lists and the resource catalog

import_list:  gateway fetch -> parse -> per-resource conflict resolution -> history
export_list:  catalog query -> format -> lint gate -> gateway commit -> history

Each run claims a `processing` queue entry first (refused if one exists for the
list) and moves it to its terminal status exactly once at the end.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Literal

from sqlmodel import Session

from awesync.core.format import format_markdown
from awesync.core.lint import lint_markdown
from awesync.core.models import (
    ConflictStrategy, ExportResult, ImportFailure, ImportResult, ParsedResource,
)
from awesync.core.parse import parse_markdown
from awesync.crud.hierarchy import resolve_category_path
from awesync.crud.lists import get_list, touch_last_sync
from awesync.crud.models import AwesomeList, QueueStatus, SyncAction, SyncQueue, SyncStatus
from awesync.crud.resources import (
    create_resource, get_approved_entries, get_by_url,
    mark_approved_synced, update_resource_from_import, upsert_line_mapping,
)
from awesync.crud.sync_state import claim_job, finish_job, record_history
from awesync.gateway import GatewayError, RepositoryGateway


logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "A curated list of awesome resources."
README_PATH = "README.md"

Outcome = Literal["added", "updated", "skipped", "conflicts"]


class ListNotFoundError(ValueError):
    """Raised when a tracked list id does not exist."""


def _error_entry(message: str, **extra: Any) -> dict[str, Any]:
    return {"error": message, "timestamp": datetime.now().isoformat(), **extra}


def _require_list(session: Session, list_id: int) -> AwesomeList:
    lst = get_list(session, list_id)
    if lst is None:
        raise ListNotFoundError(f"Awesome list {list_id} not found")
    return lst


@contextmanager
def _tracked_job(
    session: Session,
    lst: AwesomeList,
    action: SyncAction,
    payload: dict[str, Any],
    ) -> Iterator[SyncQueue]:
    """Claim the list's queue slot; on an unexpected error record a failed run and re-raise."""
    list_id = lst.id
    entry = claim_job(session, list_id, action, payload)
    session.commit()
    try:
        yield entry
    except Exception as e:
        session.rollback()
        logger.exception("%s of list %s aborted", action.value, list_id)
        record_history(session, list_id, action, SyncStatus.failed, error_log=[_error_entry(str(e))])
        finish_job(session, entry, QueueStatus.failed, str(e))
        session.commit()
        raise


def fetch_list_markdown(gateway: RepositoryGateway, lst: AwesomeList) -> str:
    """Fetch the list file; README.md goes through the README endpoint."""
    if lst.file_path == README_PATH:
        return gateway.get_readme(lst.repo_owner, lst.repo_name, lst.branch)
    return gateway.get_file(lst.repo_owner, lst.repo_name, lst.file_path, lst.branch)


def process_resource(
    session: Session,
    parsed: ParsedResource,
    list_id: int,
    strategy: ConflictStrategy,
    auto_approve: bool,
    ) -> Outcome:
    """Apply one parsed entry to the catalog and refresh its line mapping.

    The mapping is refreshed for every outcome: position tracking does not
    depend on the conflict strategy.
    """
    existing = get_by_url(session, parsed.url)
    ids = resolve_category_path(session, parsed.category_path)

    if existing is None:
        resource = create_resource(session, parsed, ids, auto_approve)
        upsert_line_mapping(session, resource.id, list_id, parsed)
        return "added"

    upsert_line_mapping(session, existing.id, list_id, parsed)
    if strategy == ConflictStrategy.skip:
        return "skipped"
    if strategy == ConflictStrategy.update:
        update_resource_from_import(session, existing, parsed, ids)
        return "updated"
    return "conflicts"


def import_list(
    session: Session,
    gateway: RepositoryGateway,
    list_id: int,
    conflict_strategy: ConflictStrategy | str = ConflictStrategy.skip,
    auto_approve: bool = False,
    ) -> ImportResult:
    """Import a tracked list into the catalog.

    A fetch failure records a failed history row and returns before any
    catalog change. Per-resource failures are collected in `errors` and the
    remaining resources are still processed.
    Raises ListNotFoundError or SyncInProgressError before any work starts.
    """
    strategy = ConflictStrategy(conflict_strategy)
    lst = _require_list(session, list_id)
    payload = {"conflict_strategy": strategy.value, "auto_approve": auto_approve}

    with _tracked_job(session, lst, SyncAction.import_, payload) as entry:
        try:
            markdown = fetch_list_markdown(gateway, lst)
        except GatewayError as e:
            logger.error("Import of list %s failed: %s", lst.id, e)
            history = record_history(
                session, lst.id, SyncAction.import_, SyncStatus.failed, error_log=[_error_entry(str(e))],
            )
            finish_job(session, entry, QueueStatus.failed, str(e))
            session.commit()
            return ImportResult(success=False, errors=[ImportFailure(url="", error=str(e))], history_id=history.id)

        parsed = parse_markdown(markdown)
        logger.info("Parsed %d resource(s) in %d section(s) from list %s",
                    len(parsed.resources), len(parsed.sections), lst.id)

        counts = {"added": 0, "updated": 0, "skipped": 0, "conflicts": 0}
        errors: list[ImportFailure] = []
        for resource in parsed.resources:
            try:
                with session.begin_nested():
                    outcome = process_resource(session, resource, lst.id, strategy, auto_approve)
            except Exception as e:  # recorded per resource; the run continues
                logger.warning("Skipping %s: %s", resource.url, e)
                errors.append(ImportFailure(url=resource.url, error=str(e)))
                continue
            counts[outcome] += 1

        status = SyncStatus.completed_with_errors if errors else SyncStatus.completed
        history = record_history(
            session, lst.id, SyncAction.import_, status,
            counts=counts,
            error_log=[_error_entry(f.error, url=f.url) for f in errors],
        )
        touch_last_sync(session, lst)
        finish_job(session, entry, QueueStatus.completed)
        session.commit()

    logger.info("Imported list %s: %s, %d error(s)", list_id, counts, len(errors))
    return ImportResult(success=True, errors=errors, history_id=history.id, **counts)


def export_list(
    session: Session,
    gateway: RepositoryGateway,
    list_id: int,
    default_description: str = DEFAULT_DESCRIPTION,
    ) -> ExportResult:
    """Render approved resources as canonical markdown and commit it to the list file.

    Lint errors are a hard gate: the gateway is not contacted and a failed
    history row carries the errors plus the rejected markdown.
    Raises ListNotFoundError or SyncInProgressError before any work starts.
    """
    lst = _require_list(session, list_id)

    with _tracked_job(session, lst, SyncAction.export, {}) as entry:
        formatted = format_markdown(
            get_approved_entries(session), lst.name, lst.description or default_description,
        )
        lint = lint_markdown(formatted.markdown)
        snapshot = {
            "markdown": formatted.markdown,
            "resource_count": formatted.resource_count,
            "category_count": formatted.category_count,
        }

        if not lint.valid:
            logger.error("Export of list %s blocked by %d lint error(s)", lst.id, len(lint.errors))
            history = record_history(
                session, lst.id, SyncAction.export, SyncStatus.failed,
                error_log=[issue.model_dump() for issue in lint.errors],
                snapshot={**snapshot, "lint_errors": len(lint.errors), "lint_warnings": len(lint.warnings)},
            )
            finish_job(session, entry, QueueStatus.failed, f"{len(lint.errors)} lint error(s)")
            session.commit()
            return ExportResult(
                success=False,
                resource_count=formatted.resource_count,
                category_count=formatted.category_count,
                lint_errors=len(lint.errors),
                lint_warnings=len(lint.warnings),
                history_id=history.id,
            )

        message = (f"chore: update awesome list ({formatted.resource_count} resources, "
                   f"{formatted.category_count} categories)")
        try:
            commit_sha = gateway.commit_file(
                lst.repo_owner, lst.repo_name, lst.branch, lst.file_path, formatted.markdown, message,
            )
        except GatewayError as e:
            logger.error("Export of list %s failed: %s", lst.id, e)
            history = record_history(
                session, lst.id, SyncAction.export, SyncStatus.failed,
                error_log=[_error_entry(str(e))], snapshot=snapshot,
            )
            finish_job(session, entry, QueueStatus.failed, str(e))
            session.commit()
            return ExportResult(
                success=False,
                resource_count=formatted.resource_count,
                category_count=formatted.category_count,
                lint_warnings=len(lint.warnings),
                history_id=history.id,
            )

        history = record_history(
            session, lst.id, SyncAction.export, SyncStatus.completed,
            counts={"added": formatted.resource_count},
            snapshot={**snapshot, "commit_sha": commit_sha, "lint_warnings": len(lint.warnings)},
        )
        touch_last_sync(session, lst)
        mark_approved_synced(session)
        finish_job(session, entry, QueueStatus.completed)
        session.commit()

    logger.info("Exported list %s: %d resource(s), commit %s", list_id, formatted.resource_count, commit_sha)
    return ExportResult(
        success=True,
        resource_count=formatted.resource_count,
        category_count=formatted.category_count,
        lint_warnings=len(lint.warnings),
        commit_sha=commit_sha,
        history_id=history.id,
    )
