"""
Community notes: students upload, admins moderate.
Approving a note triggers an immediate leaderboard recompute.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from portal.config import get_db
from portal.models.models import CommunityNote, NoteStatus, Subject, User
from portal.schemas.admin_schemas import ActionResponse
from portal.schemas.subject_schemas import CommunityNoteResponse
from portal.services.media_service import MediaStore, MediaStoreError, get_media_store, public_id_from_url, resource_type_from_url
from portal.services.score_scheduler import ScoreScheduler, get_score_scheduler
from portal.utils.auth import get_current_user, require_admin
from portal.utils.common import community_note_response, get_or_404
from portal.utils.logger import audit, get_logger

logger = get_logger(__name__)

contribution_routes = APIRouter()


def _file_type(content_type: Optional[str], filename: str) -> str:
    if (content_type or "").startswith("image/"):
        return "image"
    if filename.lower().endswith((".png", ".jpg", ".jpeg", ".gif", ".webp")):
        return "image"
    return "pdf"


@contribution_routes.post("/upload", response_model=CommunityNoteResponse)
async def upload_note(
    subject_id: int = Form(...),
    title: str = Form(...),
    description: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    media_store: MediaStore = Depends(get_media_store),
) -> CommunityNoteResponse:
    """Submit a note for moderation. It stays hidden until an admin approves it."""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded.")
    subject = get_or_404(db, Subject, subject_id, "Subject not found")
    try:
        stored = await media_store.upload(await file.read(), file.filename, file.content_type)
    except MediaStoreError as e:
        logger.exception("note upload failed user_id=%s", current_user.id)
        raise HTTPException(status_code=502, detail=f"Upload Error: {e}")

    note = CommunityNote(
        subject_id=subject.id,
        uploaded_by=current_user.id,
        title=title.strip(),
        description=description,
        file_url=stored.url,
        public_id=stored.public_id,
        original_name=file.filename,
        file_type=_file_type(file.content_type, file.filename),
        status=NoteStatus.PENDING,
    )
    db.add(note)
    db.commit()
    db.refresh(note)
    logger.info("community note submitted id=%s user_id=%s subject_id=%s", note.id, current_user.id, subject.id)
    return community_note_response(note)


# ==================== ADMIN ====================

@contribution_routes.get("/admin/manage", response_model=list[CommunityNoteResponse])
async def pending_notes(admin: User = Depends(require_admin), db: Session = Depends(get_db)):
    notes = (
        db.query(CommunityNote)
        .filter(CommunityNote.status == NoteStatus.PENDING)
        .order_by(CommunityNote.created_at.desc(), CommunityNote.id.desc())
        .all()
    )
    return [community_note_response(n) for n in notes]


@contribution_routes.post("/admin/approve/{note_id}", response_model=ActionResponse)
async def approve_note(
    note_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    scheduler: ScoreScheduler = Depends(get_score_scheduler),
) -> ActionResponse:
    note = get_or_404(db, CommunityNote, note_id, "Note not found")
    note.status = NoteStatus.APPROVED
    db.add(note)
    db.commit()
    audit("note.approve", admin.id, note_id=note_id)
    scheduler.recompute_now(db)
    return ActionResponse(message="approved", id=note_id)


@contribution_routes.post("/admin/reject/{note_id}", response_model=ActionResponse)
async def reject_note(
    note_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> ActionResponse:
    """Soft reject: the row and file are kept for history."""
    note = db.get(CommunityNote, note_id)
    if note is not None:
        note.status = NoteStatus.REJECTED
        db.add(note)
        db.commit()
        audit("note.reject", admin.id, note_id=note_id)
    return ActionResponse(message="rejected", id=note_id)


@contribution_routes.delete("/admin/delete/{note_id}", response_model=ActionResponse)
async def delete_note(
    note_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    media_store: MediaStore = Depends(get_media_store),
) -> ActionResponse:
    """Remove the note and its hosted file. A media-host failure does not block the delete."""
    note = db.get(CommunityNote, note_id)
    if note is None:
        return ActionResponse(message="deleted", id=note_id)

    public_id = note.public_id or public_id_from_url(note.file_url)
    if public_id:
        try:
            await media_store.destroy(public_id, resource_type_from_url(note.file_url))
        except MediaStoreError:
            logger.exception("media delete failed note_id=%s public_id=%s", note_id, public_id)
    db.delete(note)
    db.commit()
    audit("note.delete", admin.id, note_id=note_id, public_id=public_id)
    return ActionResponse(message="deleted", id=note_id)
