"""
Personal study goals. Every query is scoped to the owner, so other users' goals read as missing.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from portal.config import get_db
from portal.models.models import Goal, User
from portal.schemas.admin_schemas import ActionResponse
from portal.schemas.progress_schemas import GoalRequest, GoalResponse
from portal.utils.auth import get_current_user
from portal.utils.common import goal_response

goal_routes = APIRouter()


def _own_goal(db: Session, goal_id: int, user: User) -> Goal:
    goal = db.query(Goal).filter(Goal.id == goal_id, Goal.user_id == user.id).first()
    if goal is None:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


@goal_routes.get("/goals", response_model=list[GoalResponse])
async def list_goals(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    goals = (
        db.query(Goal)
        .filter(Goal.user_id == current_user.id)
        .order_by(Goal.target_date.is_(None), Goal.target_date.asc(), Goal.id.asc())
        .all()
    )
    return [goal_response(g) for g in goals]


@goal_routes.post("/goals", response_model=GoalResponse)
async def create_goal(
    req: GoalRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> GoalResponse:
    goal = Goal(user_id=current_user.id, title=req.title.strip(), target_date=req.target_date)
    db.add(goal)
    db.commit()
    db.refresh(goal)
    return goal_response(goal)


@goal_routes.post("/goals/{goal_id}/toggle", response_model=GoalResponse)
async def toggle_goal(
    goal_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> GoalResponse:
    goal = _own_goal(db, goal_id, current_user)
    goal.completed = not goal.completed
    db.add(goal)
    db.commit()
    db.refresh(goal)
    return goal_response(goal)


@goal_routes.delete("/goals/{goal_id}", response_model=ActionResponse)
async def delete_goal(
    goal_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ActionResponse:
    goal = _own_goal(db, goal_id, current_user)
    db.delete(goal)
    db.commit()
    return ActionResponse(message="Goal deleted", id=goal_id)
