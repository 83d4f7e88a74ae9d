"""
Upserts for the two rows that must stay unique per user: Progress (user, topic)
and DownloadLog (user, paper).

The unique constraints on those tables are the only guard against duplicates.
A constraint violation from a concurrent writer is turned into a named
UpsertOutcome here and never reaches the caller as an exception.
"""

from datetime import datetime
from enum import Enum
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.models.models import DownloadLog, Progress, ProgressStatus
from portal.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class UpsertOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    EXISTS = "exists"


def _insert_or_fetch(db: Session, row: T, lookup: Callable[[], Optional[T]]) -> tuple[T, bool]:
    """
    Insert row inside a savepoint; if the unique constraint rejects it, return the row that won instead.
    Only the savepoint is rolled back, so other pending work in the session is kept and committed.
    """
    try:
        with db.begin_nested():
            db.add(row)
    except IntegrityError:
        existing = lookup()
        if existing is None:
            # the violation was not the uniqueness constraint
            raise
        db.commit()
        logger.info("duplicate insert resolved to existing row %s id=%s", type(existing).__name__, existing.id)
        return existing, False
    db.commit()
    db.refresh(row)
    return row, True


def upsert_progress(
    db: Session,
    user_id: int,
    topic_id: int,
    status: Optional[ProgressStatus] = None,
    note: Optional[str] = None,
) -> tuple[Progress, UpsertOutcome]:
    """
    Create the (user, topic) progress row if absent, else update it.
    Only supplied fields change: status=None keeps the status, note=None keeps the note
    (an empty string clears it).
    """

    def lookup() -> Optional[Progress]:
        return db.query(Progress).filter(Progress.user_id == user_id, Progress.topic_id == topic_id).first()

    progress = lookup()
    if progress is None:
        fresh = Progress(
            user_id=user_id,
            topic_id=topic_id,
            status=status or ProgressStatus.UNREAD,
            note=note if note is not None else "",
            last_updated=datetime.utcnow(),
        )
        progress, created = _insert_or_fetch(db, fresh, lookup)
        if created:
            return progress, UpsertOutcome.CREATED

    if status is not None:
        progress.status = status
    if note is not None:
        progress.note = note
    progress.last_updated = datetime.utcnow()
    db.add(progress)
    db.commit()
    db.refresh(progress)
    return progress, UpsertOutcome.UPDATED


def record_download(db: Session, user_id: int, paper_id: int) -> tuple[DownloadLog, UpsertOutcome]:
    """Mark the paper downloaded by the user. Repeats return the first log untouched."""

    def lookup() -> Optional[DownloadLog]:
        return db.query(DownloadLog).filter(DownloadLog.user_id == user_id, DownloadLog.paper_id == paper_id).first()

    existing = lookup()
    if existing is not None:
        return existing, UpsertOutcome.EXISTS
    log, created = _insert_or_fetch(db, DownloadLog(user_id=user_id, paper_id=paper_id), lookup)
    return log, UpsertOutcome.CREATED if created else UpsertOutcome.EXISTS
