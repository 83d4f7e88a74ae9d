"""
Admin dashboard and moderation schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional

from portal.models.models import AnnouncementType
from portal.schemas.progress_schemas import AnnouncementResponse
from portal.schemas.subject_schemas import PaperResponse, SubjectResponse


class AnnouncementRequest(BaseModel):
    message: str = Field(min_length=1)
    type: AnnouncementType = AnnouncementType.INFO
    active: bool = True


class SubjectReadCount(BaseModel):
    name: Optional[str] = None
    count: int


class StuckTopic(BaseModel):
    topic_id: int
    title: str
    chapter_name: str
    count: int


class DashboardAnalytics(BaseModel):
    most_read_subject: SubjectReadCount
    stuck_topics: list[StuckTopic]


class DashboardResponse(BaseModel):
    subjects: list[SubjectResponse]
    papers: list[PaperResponse]
    announcements: list[AnnouncementResponse]
    is_main_admin: bool
    registration_enabled: bool
    student_login_enabled: bool
    analytics: DashboardAnalytics


class ToggleResponse(BaseModel):
    setting: str
    enabled: bool


class ActionResponse(BaseModel):
    message: str
    id: Optional[int] = None
