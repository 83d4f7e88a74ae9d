"""
Portal schemas package. Import from submodules or from this package.

Example:
    from portal.schemas import SubjectResponse, SaveProgressRequest
    from portal.schemas.progress_schemas import SubjectProgress
"""

from portal.schemas.auth_schemas import (
    AuthTokenPayload,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RegisterRequest,
    RegisterResponse,
    RegisterStatusResponse,
)
from portal.schemas.user_schemas import (
    UserResponse,
    UpdateProfileRequest,
    LeaderboardEntry,
    LeaderboardResponse,
)
from portal.schemas.subject_schemas import (
    SubjectResponse,
    CreateSubjectRequest,
    Attachment,
    TopicResponse,
    TopicSummary,
    Chapter,
    PaperImage,
    PaperResponse,
    CommunityNoteResponse,
    SubjectPapersResponse,
    SearchResponse,
    ChaptersResponse,
)
from portal.schemas.progress_schemas import (
    SaveProgressRequest,
    ProgressResponse,
    SaveProgressResponse,
    SubjectProgress,
    DownloadResponse,
    GoalRequest,
    GoalResponse,
    CommentRequest,
    CommentResponse,
    AnnouncementResponse,
    HomeResponse,
    SubjectViewResponse,
)
from portal.schemas.admin_schemas import (
    AnnouncementRequest,
    SubjectReadCount,
    StuckTopic,
    DashboardAnalytics,
    DashboardResponse,
    ToggleResponse,
    ActionResponse,
)

__all__ = [
    # auth
    "AuthTokenPayload",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "RegisterRequest",
    "RegisterResponse",
    "RegisterStatusResponse",
    # user
    "UserResponse",
    "UpdateProfileRequest",
    "LeaderboardEntry",
    "LeaderboardResponse",
    # subjects
    "SubjectResponse",
    "CreateSubjectRequest",
    "Attachment",
    "TopicResponse",
    "TopicSummary",
    "Chapter",
    "PaperImage",
    "PaperResponse",
    "CommunityNoteResponse",
    "SubjectPapersResponse",
    "SearchResponse",
    "ChaptersResponse",
    # progress
    "SaveProgressRequest",
    "ProgressResponse",
    "SaveProgressResponse",
    "SubjectProgress",
    "DownloadResponse",
    "GoalRequest",
    "GoalResponse",
    "CommentRequest",
    "CommentResponse",
    "AnnouncementResponse",
    "HomeResponse",
    "SubjectViewResponse",
    # admin
    "AnnouncementRequest",
    "SubjectReadCount",
    "StuckTopic",
    "DashboardAnalytics",
    "DashboardResponse",
    "ToggleResponse",
    "ActionResponse",
]
