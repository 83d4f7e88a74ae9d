"""
Topic discussion. Comments count towards the author's leaderboard score.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from portal.config import get_db
from portal.models.models import Comment, Role, Topic, User
from portal.schemas.admin_schemas import ActionResponse
from portal.schemas.progress_schemas import CommentRequest, CommentResponse
from portal.utils.auth import get_current_user
from portal.utils.common import comment_response, get_or_404

comment_routes = APIRouter()


@comment_routes.get("/topic/{topic_id}/comments", response_model=list[CommentResponse])
async def list_comments(topic_id: int, db: Session = Depends(get_db)):
    topic = get_or_404(db, Topic, topic_id, "Topic not found")
    comments = (
        db.query(Comment)
        .filter(Comment.topic_id == topic.id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .all()
    )
    return [comment_response(c) for c in comments]


@comment_routes.post("/topic/{topic_id}/comments", response_model=CommentResponse)
async def add_comment(
    topic_id: int,
    req: CommentRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CommentResponse:
    topic = get_or_404(db, Topic, topic_id, "Topic not found")
    content = req.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="Comment cannot be empty")
    comment = Comment(topic_id=topic.id, user_id=current_user.id, content=content)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment_response(comment)


@comment_routes.delete("/comments/{comment_id}", response_model=ActionResponse)
async def delete_comment(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ActionResponse:
    """Authors may delete their own comments; admins may delete any."""
    comment = get_or_404(db, Comment, comment_id, "Comment not found")
    if comment.user_id != current_user.id and current_user.role != Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to delete this comment")
    db.delete(comment)
    db.commit()
    return ActionResponse(message="Comment deleted", id=comment_id)
