"""Sync bookkeeping: queue entries (in-flight job markers) and append-only history"""

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from awesync.crud.models import QueueStatus, SyncAction, SyncHistory, SyncQueue, SyncStatus


logger = logging.getLogger(__name__)


class SyncInProgressError(RuntimeError):
    """Raised when a list already has a `processing` queue entry."""


def get_processing(session: Session, list_id: int) -> SyncQueue | None:
    return session.exec(
        select(SyncQueue)
        .where(SyncQueue.list_id == list_id)
        .where(SyncQueue.status == QueueStatus.processing)
    ).first()


def claim_job(
    session: Session,
    list_id: int,
    action: SyncAction,
    payload: Optional[dict[str, Any]] = None,
    ) -> SyncQueue:
    """Insert a `processing` queue entry for list_id, or raise SyncInProgressError.

    The partial unique index on (list_id) WHERE status = 'processing' makes
    this a compare-and-set that holds across processes.
    """
    running = get_processing(session, list_id)
    if running is not None:
        raise SyncInProgressError(
            f"List {list_id} already has a {running.action.value} job in progress (queue entry {running.id})"
        )

    entry = SyncQueue(list_id=list_id, action=action, status=QueueStatus.processing, payload=payload or {})
    try:
        with session.begin_nested():
            session.add(entry)
            session.flush()
    except IntegrityError as e:
        raise SyncInProgressError(f"List {list_id} already has a job in progress") from e
    return entry


def finish_job(
    session: Session,
    entry: SyncQueue,
    status: QueueStatus,
    error: Optional[str] = None,
    ) -> bool:
    """Move a processing entry to its terminal status. Returns False if it was cancelled meanwhile.

    Raises ValueError when the entry was already finished or status is not terminal.
    """
    if status == QueueStatus.processing:
        raise ValueError("finish_job requires a terminal status")
    session.refresh(entry)
    if entry.status == QueueStatus.cancelled:
        logger.warning("Queue entry %s was cancelled while running; leaving it cancelled", entry.id)
        return False
    if entry.status != QueueStatus.processing:
        raise ValueError(f"Queue entry {entry.id} already finished with status {entry.status.value}")

    entry.status = status
    entry.error = error
    entry.updated_at = datetime.now()
    session.add(entry)
    session.flush()
    return True


def cancel_job(session: Session, list_id: int, reason: str = "cancelled") -> SyncQueue | None:
    """Mark the list's processing entry as cancelled. The running job is not interrupted."""
    entry = get_processing(session, list_id)
    if entry is None:
        return None
    entry.status = QueueStatus.cancelled
    entry.error = reason
    entry.updated_at = datetime.now()
    session.add(entry)
    session.flush()
    return entry


def get_status(session: Session, list_id: int) -> tuple[str, SyncQueue | None]:
    """Summarize the latest queue entry as idle, importing, exporting or failed."""
    entry = session.exec(
        select(SyncQueue)
        .where(SyncQueue.list_id == list_id)
        .order_by(SyncQueue.created_at.desc(), SyncQueue.id.desc())
    ).first()
    if entry is None:
        return "idle", None
    if entry.status == QueueStatus.processing:
        return ("importing" if entry.action == SyncAction.import_ else "exporting"), entry
    if entry.status == QueueStatus.failed:
        return "failed", entry
    return "idle", entry


def record_history(
    session: Session,
    list_id: int,
    action: SyncAction,
    status: SyncStatus,
    counts: Optional[dict[str, int]] = None,
    error_log: Optional[list[dict[str, Any]]] = None,
    snapshot: Optional[dict[str, Any]] = None,
    ) -> SyncHistory:
    """Append an immutable history row. counts keys: added, updated, skipped, conflicts."""
    counts = counts or {}
    history = SyncHistory(
        list_id=list_id,
        action=action,
        status=status,
        items_added=counts.get("added", 0),
        items_updated=counts.get("updated", 0),
        items_skipped=counts.get("skipped", 0),
        conflicts=counts.get("conflicts", 0),
        error_log=error_log or [],
        snapshot=snapshot,
    )
    session.add(history)
    session.flush()
    return history


def get_history(session: Session, list_id: int, limit: int = 20) -> list[SyncHistory]:
    """Return the most recent history rows for a list, newest first."""
    return list(
        session.exec(
            select(SyncHistory)
            .where(SyncHistory.list_id == list_id)
            .order_by(SyncHistory.created_at.desc(), SyncHistory.id.desc())
            .limit(limit)
        ).all()
    )
