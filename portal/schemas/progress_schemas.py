"""
Progress, goal, comment and home-page schemas.
"""

from datetime import date
from pydantic import BaseModel, Field
from typing import Optional

from portal.models.models import ProgressStatus
from portal.schemas.subject_schemas import Chapter, SubjectResponse, TopicResponse, TopicSummary


class SaveProgressRequest(BaseModel):
    topic_id: int
    status: Optional[ProgressStatus] = None
    note: Optional[str] = None  # "" clears the note, None leaves it untouched


class ProgressResponse(BaseModel):
    id: int
    user_id: int
    topic_id: int
    status: str
    note: str
    last_updated: str


class SaveProgressResponse(BaseModel):
    success: bool
    progress: Optional[ProgressResponse] = None


class SubjectProgress(BaseModel):
    """Completion of one subject for one user."""
    completed: int
    total: int
    percentage: int


class DownloadResponse(BaseModel):
    success: bool
    recorded: bool  # False when this user already downloaded the paper
    images: list[str]


class GoalRequest(BaseModel):
    title: str = Field(min_length=1)
    target_date: Optional[date] = None


class GoalResponse(BaseModel):
    id: int
    title: str
    target_date: Optional[str] = None
    completed: bool
    created_at: str


class CommentRequest(BaseModel):
    content: str = Field(min_length=1)


class CommentResponse(BaseModel):
    id: int
    topic_id: int
    user_id: int
    username: str
    content: str
    created_at: str


class AnnouncementResponse(BaseModel):
    id: int
    message: str
    type: str
    active: bool
    created_at: str


class HomeResponse(BaseModel):
    subjects: list[SubjectResponse]
    announcements: list[AnnouncementResponse]
    progress: dict[int, SubjectProgress] = {}  # subject id -> completion, signed-in only
    goals: list[GoalResponse] = []


class SubjectViewResponse(BaseModel):
    subject: SubjectResponse
    chapters: list[Chapter]
    active_topic: Optional[TopicResponse] = None
    prev_topic: Optional[TopicSummary] = None
    next_topic: Optional[TopicSummary] = None
    user_progress: Optional[ProgressResponse] = None
