from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel


class LoginRequest(BaseModel):
    username: str
    password: str
    login_type: Literal["student", "admin"] = "student"


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    semester: Optional[int] = None


class LoginResponse(BaseModel):
    message: str
    token_set: bool
    role: str


class RegisterResponse(BaseModel):
    message: str
    role: str
    username: str


class RegisterStatusResponse(BaseModel):
    registration_open: bool
    is_setup: bool
    message: Optional[str] = None


class LogoutResponse(BaseModel):
    message: str


class AuthTokenPayload(BaseModel):
    sub: str
    exp: Optional[datetime] = None
