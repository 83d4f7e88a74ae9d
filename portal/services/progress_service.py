"""
Per-subject completion for a user, computed fresh on each call.
"""

from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from portal.models.models import Progress, ProgressStatus, Subject, Topic
from portal.schemas.progress_schemas import SubjectProgress

COMPLETED_STATUSES = (ProgressStatus.READ, ProgressStatus.REVISE)


def completion_percentage(completed: int, total: int) -> int:
    """round(100 * completed / total) with halves rounding up; 0 when there are no topics."""
    if total <= 0:
        return 0
    # integer form of floor(100c/t + 0.5), no float drift on exact halves
    return (200 * completed + total) // (2 * total)


def subject_progress(db: Session, user_id: int, subject_id: int) -> SubjectProgress:
    total = db.query(func.count(Topic.id)).filter(Topic.subject_id == subject_id).scalar() or 0
    if total == 0:
        return SubjectProgress(completed=0, total=0, percentage=0)

    completed = (
        db.query(func.count(func.distinct(Progress.topic_id)))
        .join(Topic, Topic.id == Progress.topic_id)
        .filter(
            Topic.subject_id == subject_id,
            Progress.user_id == user_id,
            Progress.status.in_(COMPLETED_STATUSES),
        )
        .scalar()
        or 0
    )
    return SubjectProgress(
        completed=completed,
        total=total,
        percentage=completion_percentage(completed, total),
    )


def progress_map(db: Session, user_id: int, subjects: Iterable[Subject]) -> dict[int, SubjectProgress]:
    return {s.id: subject_progress(db, user_id, s.id) for s in subjects}
