"""
Public pages: home dashboard, search and subject views.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from portal.config import get_db
from portal.models.models import Announcement, CommunityNote, Goal, NoteStatus, Paper, Progress, Subject, Topic, User
from portal.schemas.progress_schemas import HomeResponse, SubjectViewResponse
from portal.schemas.subject_schemas import SearchResponse, SubjectPapersResponse
from portal.services.progress_service import progress_map
from portal.utils.auth import get_optional_user
from portal.utils.common import (
    announcement_response,
    community_note_response,
    escape_like,
    get_or_404,
    goal_response,
    group_chapters,
    paper_response,
    progress_response,
    subject_response,
    topic_response,
    topic_summary,
)

index_routes = APIRouter()


def _ordered_subjects(db: Session) -> list[Subject]:
    return db.query(Subject).order_by(Subject.semester.asc(), Subject.name.asc()).all()


def _subject_topics(db: Session, subject_id: int) -> list[Topic]:
    return db.query(Topic).filter(Topic.subject_id == subject_id).order_by(Topic.created_at.asc(), Topic.id.asc()).all()


@index_routes.get("/health")
def health() -> dict:
    return {"message": "Notes portal is healthy"}


@index_routes.get("/", response_model=HomeResponse)
async def home(
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> HomeResponse:
    """
    Subjects and active announcements for everyone. Signed-in users also get
    per-subject completion (computed fresh) and their goals by target date.
    """
    subjects = _ordered_subjects(db)
    announcements = (
        db.query(Announcement)
        .filter(Announcement.active == True)  # noqa: E712
        .order_by(Announcement.created_at.desc())
        .all()
    )
    home_page = HomeResponse(
        subjects=[subject_response(s) for s in subjects],
        announcements=[announcement_response(a) for a in announcements],
    )
    if current_user is not None:
        home_page.progress = progress_map(db, current_user.id, subjects)
        goals = (
            db.query(Goal)
            .filter(Goal.user_id == current_user.id)
            .order_by(Goal.target_date.is_(None), Goal.target_date.asc(), Goal.id.asc())
            .all()
        )
        home_page.goals = [goal_response(g) for g in goals]
    return home_page


@index_routes.get("/search", response_model=SearchResponse)
async def search(q: str = "", db: Session = Depends(get_db)) -> SearchResponse:
    """Case-insensitive literal match on topic titles and subject names."""
    query = q.strip()
    if not query:
        return SearchResponse(query="", topics=[], subjects=[])
    pattern = f"%{escape_like(query)}%"
    topics = db.query(Topic).filter(Topic.title.ilike(pattern, escape="\\")).order_by(Topic.title.asc()).all()
    subjects = db.query(Subject).filter(Subject.name.ilike(pattern, escape="\\")).order_by(Subject.name.asc()).all()
    return SearchResponse(
        query=query,
        topics=[topic_summary(t) for t in topics],
        subjects=[subject_response(s) for s in subjects],
    )


@index_routes.get("/subject/{subject_id}", response_model=SubjectViewResponse)
async def view_subject(
    subject_id: int,
    topic_id: Optional[int] = None,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> SubjectViewResponse:
    """Subject reader: chapter sidebar, active topic (requested or first), prev/next and own progress."""
    subject = get_or_404(db, Subject, subject_id, "Subject not found")
    topics = _subject_topics(db, subject.id)

    active_index = -1
    if topic_id is not None:
        active_index = next((i for i, t in enumerate(topics) if t.id == topic_id), -1)
    elif topics:
        active_index = 0
    active = topics[active_index] if active_index != -1 else None

    view = SubjectViewResponse(subject=subject_response(subject), chapters=group_chapters(topics))
    if active is None:
        return view

    view.active_topic = topic_response(active)
    if active_index > 0:
        view.prev_topic = topic_summary(topics[active_index - 1])
    if active_index < len(topics) - 1:
        view.next_topic = topic_summary(topics[active_index + 1])
    if current_user is not None:
        progress = (
            db.query(Progress)
            .filter(Progress.user_id == current_user.id, Progress.topic_id == active.id)
            .first()
        )
        if progress is not None:
            view.user_progress = progress_response(progress)
    return view


@index_routes.get("/subject/{subject_id}/papers", response_model=SubjectPapersResponse)
async def subject_papers(subject_id: int, db: Session = Depends(get_db)) -> SubjectPapersResponse:
    """Question papers (newest year first) and approved community notes for a subject."""
    subject = get_or_404(db, Subject, subject_id, "Subject not found")
    papers = db.query(Paper).filter(Paper.subject_id == subject.id).order_by(Paper.year.desc(), Paper.id.desc()).all()
    notes = (
        db.query(CommunityNote)
        .filter(CommunityNote.subject_id == subject.id, CommunityNote.status == NoteStatus.APPROVED)
        .order_by(CommunityNote.created_at.desc())
        .all()
    )
    return SubjectPapersResponse(
        subject=subject_response(subject),
        papers=[paper_response(p) for p in papers],
        community_notes=[community_note_response(n) for n in notes],
        chapters=group_chapters(_subject_topics(db, subject.id)),
    )
