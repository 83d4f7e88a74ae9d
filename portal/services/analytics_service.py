"""
Admin dashboard analytics over progress rows.
"""

from sqlalchemy import func
from sqlalchemy.orm import Session

from portal.models.models import Progress, ProgressStatus, Subject, Topic
from portal.schemas.admin_schemas import DashboardAnalytics, StuckTopic, SubjectReadCount


def most_read_subject(db: Session) -> SubjectReadCount:
    """Subject with the most topics marked read, counted over all users."""
    read_count = func.count(Progress.id).label("n")
    row = (
        db.query(Subject.name, read_count)
        .join(Topic, Topic.subject_id == Subject.id)
        .join(Progress, Progress.topic_id == Topic.id)
        .filter(Progress.status == ProgressStatus.READ)
        .group_by(Subject.id, Subject.name)
        .order_by(read_count.desc(), Subject.name.asc())
        .first()
    )
    if row is None:
        return SubjectReadCount(name=None, count=0)
    return SubjectReadCount(name=row[0], count=int(row[1]))


def stuck_topics(db: Session, limit: int = 5) -> list[StuckTopic]:
    """Topics most often marked for revision."""
    revise_count = func.count(Progress.id).label("n")
    rows = (
        db.query(Topic.id, Topic.title, Topic.chapter_name, revise_count)
        .join(Progress, Progress.topic_id == Topic.id)
        .filter(Progress.status == ProgressStatus.REVISE)
        .group_by(Topic.id, Topic.title, Topic.chapter_name)
        .order_by(revise_count.desc(), Topic.id.asc())
        .limit(limit)
        .all()
    )
    return [StuckTopic(topic_id=tid, title=title, chapter_name=chapter, count=int(n)) for tid, title, chapter, n in rows]


def dashboard_analytics(db: Session) -> DashboardAnalytics:
    return DashboardAnalytics(most_read_subject=most_read_subject(db), stuck_topics=stuck_topics(db))
