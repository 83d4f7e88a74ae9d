"""
Profile and leaderboard endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from portal.config import get_db
from portal.models.models import Role, User
from portal.schemas.user_schemas import LeaderboardEntry, LeaderboardResponse, UpdateProfileRequest, UserResponse
from portal.utils.auth import get_current_user
from portal.utils.common import user_response
from portal.utils.jwt import verify_password

user_routes = APIRouter()


@user_routes.post("/profile/update", response_model=UserResponse)
async def update_profile(
    body: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UserResponse:
    """Change semester. Requires the current password."""
    if not verify_password(body.password, current_user.hashed_password):
        raise HTTPException(status_code=400, detail="Incorrect Password")
    current_user.semester = body.semester
    db.add(current_user)
    db.commit()
    db.refresh(current_user)
    return user_response(current_user)


@user_routes.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
) -> LeaderboardResponse:
    """
    Students by cached score, highest first (ties by username).
    Scores are whatever the last recompute pass stored.
    """
    students = (
        db.query(User)
        .filter(User.role == Role.STUDENT)
        .order_by(User.score.desc(), User.username.asc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    # rank is assigned after pagination so page 2 continues the numbering
    return LeaderboardResponse(
        entries=[
            LeaderboardEntry(
                rank=skip + idx + 1,
                user_id=u.id,
                username=u.username,
                name=u.name,
                semester=u.semester,
                score=u.score or 0,
            )
            for idx, u in enumerate(students)
        ]
    )
