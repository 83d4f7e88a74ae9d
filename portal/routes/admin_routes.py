"""
Admin panel: dashboard, announcements, site switches, subjects, topics and papers.
Every route requires an admin; the role is read from the database on each request.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.config import get_db, settings
from portal.models.models import Announcement, Paper, PaperType, Subject, Topic, User
from portal.schemas.admin_schemas import ActionResponse, AnnouncementRequest, DashboardResponse, ToggleResponse
from portal.schemas.progress_schemas import AnnouncementResponse
from portal.schemas.subject_schemas import ChaptersResponse, CreateSubjectRequest, PaperResponse, SubjectResponse, TopicResponse
from portal.services.analytics_service import dashboard_analytics
from portal.services.media_service import (
    MediaStore,
    MediaStoreError,
    get_media_store,
    public_id_from_url,
    remove_attachments,
    resource_type_from_url,
    save_attachment,
)
from portal.services.site_settings import get_main_admin, get_system_settings, is_main_admin
from portal.utils.auth import require_admin
from portal.utils.common import (
    announcement_response,
    get_or_404,
    paper_response,
    subject_response,
    topic_response,
)
from portal.utils.logger import audit, get_logger

logger = get_logger(__name__)

admin_routes = APIRouter()

MAX_PAPER_IMAGES = 50


async def _destroy_quietly(media_store: MediaStore, refs: list[tuple[str, str]]) -> None:
    """Best-effort media cleanup of (public_id, resource_type) pairs; a failing delete is logged and skipped."""
    for public_id, resource_type in refs:
        try:
            await media_store.destroy(public_id, resource_type)
        except MediaStoreError:
            logger.exception("media delete failed public_id=%s", public_id)


def _image_ref(img: dict) -> tuple[str, str]:
    return img["public_id"], img.get("resource_type") or resource_type_from_url(img.get("url", ""))


# ==================== DASHBOARD ====================

@admin_routes.get("", response_model=DashboardResponse)
async def dashboard(admin: User = Depends(require_admin), db: Session = Depends(get_db)) -> DashboardResponse:
    subjects = db.query(Subject).order_by(Subject.semester.asc(), Subject.name.asc()).all()
    papers = db.query(Paper).order_by(Paper.created_at.desc()).all()
    announcements = db.query(Announcement).order_by(Announcement.created_at.desc()).all()
    main_admin = get_main_admin(db)
    return DashboardResponse(
        subjects=[subject_response(s) for s in subjects],
        papers=[paper_response(p) for p in papers],
        announcements=[announcement_response(a) for a in announcements],
        is_main_admin=main_admin is not None and main_admin.id == admin.id,
        registration_enabled=bool(main_admin.is_registration_enabled) if main_admin else True,
        student_login_enabled=bool(get_system_settings(db).student_login_enabled),
        analytics=dashboard_analytics(db),
    )


# ==================== ANNOUNCEMENTS ====================

@admin_routes.post("/announcement", response_model=AnnouncementResponse)
async def create_announcement(
    req: AnnouncementRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> AnnouncementResponse:
    announcement = Announcement(message=req.message, type=req.type, active=req.active)
    db.add(announcement)
    db.commit()
    db.refresh(announcement)
    return announcement_response(announcement)


@admin_routes.delete("/announcement/{announcement_id}", response_model=ActionResponse)
async def delete_announcement(
    announcement_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ActionResponse:
    announcement = get_or_404(db, Announcement, announcement_id, "Announcement not found")
    db.delete(announcement)
    db.commit()
    return ActionResponse(message="Announcement deleted", id=announcement_id)


# ==================== SITE SETTINGS ====================

@admin_routes.post("/toggle-registration", response_model=ToggleResponse)
async def toggle_registration(admin: User = Depends(require_admin), db: Session = Depends(get_db)) -> ToggleResponse:
    """Open or close registration. Only the main admin's flag gates registration, so only they may flip it."""
    if not is_main_admin(db, admin):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the main admin can change registration")
    admin.is_registration_enabled = not admin.is_registration_enabled
    db.add(admin)
    db.commit()
    audit("registration.toggle", admin.id, enabled=admin.is_registration_enabled)
    return ToggleResponse(setting="registration", enabled=bool(admin.is_registration_enabled))


@admin_routes.post("/toggle-student-login", response_model=ToggleResponse)
async def toggle_student_login(admin: User = Depends(require_admin), db: Session = Depends(get_db)) -> ToggleResponse:
    row = get_system_settings(db)
    row.student_login_enabled = not row.student_login_enabled
    db.add(row)
    db.commit()
    audit("student_login.toggle", admin.id, enabled=row.student_login_enabled)
    return ToggleResponse(setting="student_login", enabled=bool(row.student_login_enabled))


# ==================== SUBJECTS ====================

@admin_routes.post("/subjects", response_model=SubjectResponse)
async def create_subject(
    req: CreateSubjectRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> SubjectResponse:
    subject = Subject(name=req.name.strip(), description=req.description, semester=req.semester)
    db.add(subject)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail=f"Error creating subject: '{req.name}' already exists")
    db.refresh(subject)
    return subject_response(subject)


@admin_routes.delete("/subjects/{subject_id}", response_model=ActionResponse)
async def delete_subject(
    subject_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    media_store: MediaStore = Depends(get_media_store),
) -> ActionResponse:
    """Delete a subject with its topics, papers and community notes, including their files."""
    subject = get_or_404(db, Subject, subject_id, "Subject not found")
    attachments = [a for t in subject.topics for a in (t.attachments or [])]
    media = [_image_ref(img) for p in subject.papers for img in (p.images or []) if img.get("public_id")]
    for n in subject.community_notes:
        public_id = n.public_id or public_id_from_url(n.file_url)
        if public_id:
            media.append((public_id, resource_type_from_url(n.file_url)))

    db.delete(subject)
    db.commit()

    remove_attachments(attachments, settings.uploads_dir)
    await _destroy_quietly(media_store, media)
    audit("subject.delete", admin.id, subject_id=subject_id, attachments=len(attachments), media=len(media))
    return ActionResponse(message="Subject deleted", id=subject_id)


@admin_routes.get("/subjects/{subject_id}/chapters", response_model=ChaptersResponse)
async def list_chapters(
    subject_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ChaptersResponse:
    """Existing chapter names, for the add-topic form."""
    subject = get_or_404(db, Subject, subject_id, "Subject not found")
    names = [
        name
        for (name,) in db.query(Topic.chapter_name)
        .filter(Topic.subject_id == subject.id)
        .order_by(Topic.created_at.asc(), Topic.id.asc())
        .all()
    ]
    return ChaptersResponse(subject_id=subject.id, chapters=list(dict.fromkeys(names)))


# ==================== TOPICS ====================

@admin_routes.post("/subjects/{subject_id}/topics", response_model=TopicResponse)
async def create_topic(
    subject_id: int,
    chapter_name: str = Form(...),
    title: str = Form(...),
    content: str = Form(...),
    attachments: Optional[list[UploadFile]] = File(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> TopicResponse:
    """Create a topic; attachments are stored under the uploads directory."""
    subject = get_or_404(db, Subject, subject_id, "Subject not found")
    saved = [await save_attachment(f, settings.uploads_dir) for f in (attachments or []) if f.filename]
    topic = Topic(
        subject_id=subject.id,
        chapter_name=chapter_name.strip(),
        title=title.strip(),
        content=content,
        attachments=saved,
    )
    db.add(topic)
    db.commit()
    db.refresh(topic)
    return topic_response(topic)


@admin_routes.delete("/topics/{topic_id}", response_model=ActionResponse)
async def delete_topic(
    topic_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ActionResponse:
    topic = get_or_404(db, Topic, topic_id, "Topic not found")
    attachments = list(topic.attachments or [])
    subject_id = topic.subject_id
    db.delete(topic)
    db.commit()
    remove_attachments(attachments, settings.uploads_dir)
    return ActionResponse(message=f"Topic deleted from subject {subject_id}", id=topic_id)


# ==================== PAPERS ====================

@admin_routes.post("/papers", response_model=PaperResponse)
async def create_paper(
    subject_id: int = Form(...),
    title: str = Form(...),
    year: int = Form(...),
    paper_type: PaperType = Form(PaperType.END, alias="type"),
    images: Optional[list[UploadFile]] = File(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    media_store: MediaStore = Depends(get_media_store),
) -> PaperResponse:
    """Create a question paper; page images go to the media store."""
    subject = get_or_404(db, Subject, subject_id, "Subject not found")
    files = [f for f in (images or []) if f.filename]
    if len(files) > MAX_PAPER_IMAGES:
        raise HTTPException(status_code=400, detail=f"Upload Error: at most {MAX_PAPER_IMAGES} images per paper")

    stored = []
    try:
        for f in files:
            stored.append(await media_store.upload(await f.read(), f.filename, f.content_type))
    except MediaStoreError as e:
        logger.exception("paper upload failed subject_id=%s", subject.id)
        await _destroy_quietly(media_store, [(m.public_id, m.resource_type) for m in stored])
        raise HTTPException(status_code=502, detail=f"Upload Error: {e}")

    paper = Paper(
        subject_id=subject.id,
        title=title.strip(),
        year=year,
        type=paper_type,
        images=[{"url": m.url, "public_id": m.public_id, "resource_type": m.resource_type} for m in stored],
    )
    db.add(paper)
    db.commit()
    db.refresh(paper)
    return paper_response(paper)


@admin_routes.delete("/papers/{paper_id}", response_model=ActionResponse)
async def delete_paper(
    paper_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    media_store: MediaStore = Depends(get_media_store),
) -> ActionResponse:
    paper = get_or_404(db, Paper, paper_id, "Paper not found")
    media = [_image_ref(img) for img in (paper.images or []) if img.get("public_id")]
    db.delete(paper)
    db.commit()
    await _destroy_quietly(media_store, media)
    return ActionResponse(message="Paper deleted", id=paper_id)
