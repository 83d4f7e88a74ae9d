"""
Subject, topic, paper and community-note schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional


class SubjectResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    semester: Optional[int] = None
    created_at: str


class CreateSubjectRequest(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    semester: Optional[int] = Field(default=None, ge=1, le=8)


class Attachment(BaseModel):
    filename: str
    path: str
    original_name: str


class TopicResponse(BaseModel):
    id: int
    subject_id: int
    chapter_name: str
    title: str
    content: str
    attachments: list[Attachment] = []
    created_at: str


class TopicSummary(BaseModel):
    """Sidebar entry: no content body."""
    id: int
    chapter_name: str
    title: str


class Chapter(BaseModel):
    name: str
    topics: list[TopicSummary]


class PaperImage(BaseModel):
    url: str
    public_id: Optional[str] = None


class PaperResponse(BaseModel):
    id: int
    subject_id: int
    title: str
    year: int
    type: str
    images: list[PaperImage] = []
    created_at: str


class CommunityNoteResponse(BaseModel):
    id: int
    subject_id: int
    uploaded_by: int
    uploader_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    file_url: str
    original_name: Optional[str] = None
    file_type: str
    status: str
    created_at: str


class SubjectPapersResponse(BaseModel):
    subject: SubjectResponse
    papers: list[PaperResponse]
    community_notes: list[CommunityNoteResponse]
    chapters: list[Chapter]


class SearchResponse(BaseModel):
    query: str
    topics: list[TopicSummary]
    subjects: list[SubjectResponse]


class ChaptersResponse(BaseModel):
    subject_id: int
    chapters: list[str]
