"""
Common helpers used across multiple routes: formatting, lookups and response builders.
"""

import re
import time
import uuid
from datetime import date, datetime
from typing import Optional, Type, TypeVar

from fastapi import HTTPException
from sqlalchemy.orm import Session

from portal.config import Base
from portal.models.models import (
    Announcement,
    Comment,
    CommunityNote,
    Goal,
    Paper,
    Progress,
    Subject,
    Topic,
    User,
)
from portal.schemas.progress_schemas import (
    AnnouncementResponse,
    CommentResponse,
    GoalResponse,
    ProgressResponse,
)
from portal.schemas.subject_schemas import (
    Attachment,
    Chapter,
    CommunityNoteResponse,
    PaperImage,
    PaperResponse,
    SubjectResponse,
    TopicResponse,
    TopicSummary,
)
from portal.schemas.user_schemas import UserResponse

M = TypeVar("M", bound=Base)

_UNSAFE_FILENAME = re.compile(r"[^a-zA-Z0-9.]")


def iso_format(dt: datetime | date | None) -> Optional[str]:
    """Format datetime as ISO string with Z suffix; dates stay plain."""
    if dt is None:
        return None
    if isinstance(dt, datetime):
        return dt.isoformat() + "Z"
    return dt.isoformat()


def enum_value(value) -> str:
    return getattr(value, "value", value)


def get_or_404(db: Session, model: Type[M], obj_id: int, detail: Optional[str] = None) -> M:
    obj = db.get(model, obj_id)
    if obj is None:
        raise HTTPException(status_code=404, detail=detail or f"{model.__name__} not found")
    return obj


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so user input matches literally (use with escape='\\')."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def safe_filename(original: str) -> str:
    """Upload name on disk: <epoch-ms>-<8 hex>-<name with anything but [a-zA-Z0-9.] replaced by _>."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{_UNSAFE_FILENAME.sub('_', original or 'file')}"


def group_chapters(topics: list[Topic]) -> list[Chapter]:
    """Group topics by chapter name, keeping the order in which chapters first appear."""
    chapters: dict[str, list[TopicSummary]] = {}
    for t in topics:
        chapters.setdefault(t.chapter_name, []).append(topic_summary(t))
    return [Chapter(name=name, topics=items) for name, items in chapters.items()]


def user_response(u: User) -> UserResponse:
    return UserResponse(
        id=u.id,
        username=u.username,
        name=u.name,
        email=u.email,
        role=enum_value(u.role),
        semester=u.semester,
        score=u.score or 0,
    )


def subject_response(s: Subject) -> SubjectResponse:
    return SubjectResponse(
        id=s.id,
        name=s.name,
        description=s.description,
        semester=s.semester,
        created_at=iso_format(s.created_at),
    )


def topic_summary(t: Topic) -> TopicSummary:
    return TopicSummary(id=t.id, chapter_name=t.chapter_name, title=t.title)


def topic_response(t: Topic) -> TopicResponse:
    return TopicResponse(
        id=t.id,
        subject_id=t.subject_id,
        chapter_name=t.chapter_name,
        title=t.title,
        content=t.content,
        attachments=[Attachment(**a) for a in (t.attachments or [])],
        created_at=iso_format(t.created_at),
    )


def paper_response(p: Paper) -> PaperResponse:
    return PaperResponse(
        id=p.id,
        subject_id=p.subject_id,
        title=p.title,
        year=p.year,
        type=enum_value(p.type),
        images=[PaperImage(**img) for img in (p.images or [])],
        created_at=iso_format(p.created_at),
    )


def community_note_response(n: CommunityNote) -> CommunityNoteResponse:
    uploader = n.uploader
    return CommunityNoteResponse(
        id=n.id,
        subject_id=n.subject_id,
        uploaded_by=n.uploaded_by,
        uploader_name=(uploader.name or uploader.username) if uploader else None,
        title=n.title,
        description=n.description,
        file_url=n.file_url,
        original_name=n.original_name,
        file_type=n.file_type,
        status=enum_value(n.status),
        created_at=iso_format(n.created_at),
    )


def progress_response(p: Progress) -> ProgressResponse:
    return ProgressResponse(
        id=p.id,
        user_id=p.user_id,
        topic_id=p.topic_id,
        status=enum_value(p.status),
        note=p.note or "",
        last_updated=iso_format(p.last_updated),
    )


def goal_response(g: Goal) -> GoalResponse:
    return GoalResponse(
        id=g.id,
        title=g.title,
        target_date=iso_format(g.target_date),
        completed=bool(g.completed),
        created_at=iso_format(g.created_at),
    )


def comment_response(c: Comment) -> CommentResponse:
    return CommentResponse(
        id=c.id,
        topic_id=c.topic_id,
        user_id=c.user_id,
        username=c.user.username if c.user else "unknown",
        content=c.content,
        created_at=iso_format(c.created_at),
    )


def announcement_response(a: Announcement) -> AnnouncementResponse:
    return AnnouncementResponse(
        id=a.id,
        message=a.message,
        type=enum_value(a.type),
        active=bool(a.active),
        created_at=iso_format(a.created_at),
    )
