from portal.config import Base
from sqlalchemy import (
    Column,
    Integer,
    String,
    JSON,
    DateTime,
    Date,
    ForeignKey,
    Text,
    Boolean,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    STUDENT = "student"
    ADMIN = "admin"


class ProgressStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"
    REVISE = "revise"


class PaperType(str, Enum):
    MID = "mid"
    END = "end"
    ASSIGNMENT = "assignment"
    OTHER = "other"


class NoteStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AnnouncementType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    URGENT = "urgent"


def _enum(enum_cls):
    # persist the lowercase values, not the member names
    return SQLEnum(enum_cls, values_callable=lambda e: [m.value for m in e], native_enum=False)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=True)
    email = Column(String, unique=True, index=True, nullable=True)
    username = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(_enum(Role), default=Role.STUDENT, nullable=False, index=True)
    semester = Column(Integer, nullable=True, default=1)  # 1..8, null for the main admin
    is_registration_enabled = Column(Boolean, default=True, nullable=False)
    score = Column(Integer, default=0, nullable=False)  # leaderboard cache
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Subject(Base):
    __tablename__ = "subjects"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(Text, nullable=True)
    semester = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    topics = relationship("Topic", backref="subject", cascade="all, delete-orphan")
    papers = relationship("Paper", backref="subject", cascade="all, delete-orphan")
    community_notes = relationship("CommunityNote", backref="subject", cascade="all, delete-orphan")


class Topic(Base):
    __tablename__ = "topics"
    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), index=True, nullable=False)
    chapter_name = Column(String, nullable=False)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)  # HTML from the editor
    attachments = Column(JSON, nullable=True)  # list[{filename, path, original_name}]
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    progress = relationship("Progress", backref="topic", cascade="all, delete-orphan")
    comments = relationship("Comment", backref="topic", cascade="all, delete-orphan")


class Paper(Base):
    __tablename__ = "papers"
    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), index=True, nullable=False)
    title = Column(String, nullable=False)  # e.g. "End Semester 2023"
    year = Column(Integer, nullable=False)
    type = Column(_enum(PaperType), default=PaperType.END, nullable=False)
    images = Column(JSON, nullable=True)  # list[{url, public_id}] on the media host
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    downloads = relationship("DownloadLog", backref="paper", cascade="all, delete-orphan")


class Progress(Base):
    __tablename__ = "progress"
    __table_args__ = (
        UniqueConstraint("user_id", "topic_id", name="uq_progress_user_topic"),
    )
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    topic_id = Column(Integer, ForeignKey("topics.id"), index=True, nullable=False)
    status = Column(_enum(ProgressStatus), default=ProgressStatus.UNREAD, nullable=False)
    note = Column(Text, default="", nullable=False)
    last_updated = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", backref="progress", foreign_keys=[user_id])


class DownloadLog(Base):
    __tablename__ = "download_logs"
    __table_args__ = (
        UniqueConstraint("user_id", "paper_id", name="uq_download_user_paper"),
    )
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    paper_id = Column(Integer, ForeignKey("papers.id"), index=True, nullable=False)
    downloaded_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Comment(Base):
    __tablename__ = "comments"
    id = Column(Integer, primary_key=True, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id"), index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", backref="comments", foreign_keys=[user_id])


class Goal(Base):
    __tablename__ = "goals"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    title = Column(String, nullable=False)
    target_date = Column(Date, nullable=True)
    completed = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Announcement(Base):
    __tablename__ = "announcements"
    id = Column(Integer, primary_key=True, index=True)
    message = Column(Text, nullable=False)
    type = Column(_enum(AnnouncementType), default=AnnouncementType.INFO, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class CommunityNote(Base):
    __tablename__ = "community_notes"
    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), index=True, nullable=False)
    uploaded_by = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    file_url = Column(String, nullable=False)
    public_id = Column(String, nullable=True)  # media host deletion token
    original_name = Column(String, nullable=True)
    file_type = Column(String, default="pdf", nullable=False)  # pdf|image
    status = Column(_enum(NoteStatus), default=NoteStatus.PENDING, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    uploader = relationship("User", foreign_keys=[uploaded_by])


class SystemSettings(Base):
    __tablename__ = "system_settings"
    id = Column(Integer, primary_key=True, index=True)
    student_login_enabled = Column(Boolean, default=True, nullable=False)
