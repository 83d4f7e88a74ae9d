from pydantic import BaseModel, Field
from typing import Optional


class UserResponse(BaseModel):
    id: int
    username: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: str
    semester: Optional[int] = None
    score: int


class UpdateProfileRequest(BaseModel):
    semester: int = Field(ge=1, le=8)
    password: str


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    username: str
    name: Optional[str] = None
    semester: Optional[int] = None
    score: int


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry]
