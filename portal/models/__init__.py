"""
Portal data models. Single import surface for DB entities and their enums.

DB entities (portal.models.models):
- User, Subject, Topic, Paper, Progress, DownloadLog, Comment, Goal,
  Announcement, CommunityNote, SystemSettings

Enums:
- Role, ProgressStatus, PaperType, NoteStatus, AnnouncementType
"""

from portal.models.models import (
    User,
    Subject,
    Topic,
    Paper,
    Progress,
    DownloadLog,
    Comment,
    Goal,
    Announcement,
    CommunityNote,
    SystemSettings,
    Role,
    ProgressStatus,
    PaperType,
    NoteStatus,
    AnnouncementType,
)

__all__ = [
    "User",
    "Subject",
    "Topic",
    "Paper",
    "Progress",
    "DownloadLog",
    "Comment",
    "Goal",
    "Announcement",
    "CommunityNote",
    "SystemSettings",
    "Role",
    "ProgressStatus",
    "PaperType",
    "NoteStatus",
    "AnnouncementType",
]
