"""
Leaderboard scoring: a full recompute of every student's score from their
progress, downloads and comments.
"""

from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.orm import Session

from portal.models.models import Comment, DownloadLog, Progress, ProgressStatus, Role, User
from portal.utils.logger import get_logger, log_duration

logger = get_logger(__name__)

READ_POINTS = 2
REVISE_POINTS = 5
DOWNLOAD_POINTS = 1
COMMENT_POINTS = 1


@dataclass(frozen=True)
class ScoreReport:
    students: int
    updated: int


def compute_score(read: int, revise: int, downloads: int, comments: int) -> int:
    return (
        READ_POINTS * read
        + REVISE_POINTS * revise
        + DOWNLOAD_POINTS * downloads
        + COMMENT_POINTS * comments
    )


def _counts_by_user(db: Session, user_column, *criteria) -> dict[int, int]:
    rows = db.query(user_column, func.count()).filter(*criteria).group_by(user_column).all()
    return {int(user_id): int(n) for user_id, n in rows}


def recalculate_scores(db: Session) -> ScoreReport:
    """
    Recompute the score of every student. Not incremental: each call re-counts
    everything. Rows are only written when the score actually changed.
    """
    with log_duration(logger, "score recompute"):
        read = _counts_by_user(db, Progress.user_id, Progress.status == ProgressStatus.READ)
        revise = _counts_by_user(db, Progress.user_id, Progress.status == ProgressStatus.REVISE)
        downloads = _counts_by_user(db, DownloadLog.user_id)
        comments = _counts_by_user(db, Comment.user_id)

        students = db.query(User).filter(User.role == Role.STUDENT).all()
        updated = 0
        for user in students:
            score = compute_score(
                read.get(user.id, 0),
                revise.get(user.id, 0),
                downloads.get(user.id, 0),
                comments.get(user.id, 0),
            )
            if user.score != score:
                user.score = score
                db.add(user)
                updated += 1
        if updated:
            db.commit()

    logger.info("scores recomputed students=%d updated=%d", len(students), updated)
    return ScoreReport(students=len(students), updated=updated)
