"""
JSON API used by the topic reader: save progress, record paper downloads.
"""

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from portal.config import get_db
from portal.models.models import Paper, Topic, User
from portal.schemas.progress_schemas import DownloadResponse, SaveProgressRequest, SaveProgressResponse
from portal.utils.auth import get_current_user
from portal.utils.common import get_or_404, progress_response
from portal.utils.logger import get_logger
from portal.utils.persistence import UpsertOutcome, record_download, upsert_progress

logger = get_logger(__name__)

progress_routes = APIRouter()


@progress_routes.post("/api/progress", response_model=SaveProgressResponse)
async def save_progress(
    payload: dict = Body(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Upsert the caller's progress on a topic: {topic_id, status?, note?}.
    Any failure answers 400 {"success": false}.
    """
    try:
        req = SaveProgressRequest.model_validate(payload)
        if db.get(Topic, req.topic_id) is None:
            raise LookupError(f"topic {req.topic_id} not found")
        progress, outcome = upsert_progress(db, current_user.id, req.topic_id, status=req.status, note=req.note)
    except (ValidationError, LookupError) as e:
        logger.warning("progress save rejected user_id=%s: %s", current_user.id, e)
        return JSONResponse(status_code=400, content={"success": False})
    except Exception:
        logger.exception("progress save failed user_id=%s", current_user.id)
        db.rollback()
        return JSONResponse(status_code=400, content={"success": False})

    logger.info(
        "progress %s user_id=%s topic_id=%s status=%s",
        outcome.value,
        current_user.id,
        progress.topic_id,
        progress.status.value,
    )
    return SaveProgressResponse(success=True, progress=progress_response(progress))


@progress_routes.post("/api/papers/{paper_id}/download", response_model=DownloadResponse)
async def download_paper(
    paper_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> DownloadResponse:
    """Mark the paper downloaded (once per user) and hand back its image URLs."""
    paper = get_or_404(db, Paper, paper_id, "Paper not found")
    _, outcome = record_download(db, current_user.id, paper.id)
    return DownloadResponse(
        success=True,
        recorded=outcome == UpsertOutcome.CREATED,
        images=[img.get("url") for img in (paper.images or []) if img.get("url")],
    )
