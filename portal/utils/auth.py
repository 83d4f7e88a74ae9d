from typing import Optional

from fastapi import Cookie, Depends, HTTPException, Response, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from portal.config import get_db, settings
from portal.models.models import Role, User
from portal.utils.jwt import create_access_token, get_password_hash, verify_token

COOKIE_NAME = "access_token"


def _load_user(access_token: Optional[str], db: Session) -> User:
    payload = verify_token(access_token)
    try:
        user_id = int(payload.sub)
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def get_current_user(access_token: Optional[str] = Cookie(None), db: Session = Depends(get_db)) -> User:
    """
    The signed-in user, re-read from the database on every request.
    The cookie only names the user; role and username always come from the stored row.
    """
    if not access_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    return _load_user(access_token, db)


def get_optional_user(access_token: Optional[str] = Cookie(None), db: Session = Depends(get_db)) -> Optional[User]:
    """Like get_current_user, but anonymous visitors (or stale cookies) get None."""
    if not access_token:
        return None
    try:
        return _load_user(access_token, db)
    except HTTPException:
        return None


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access Denied: Admins only")
    return current_user


def set_auth_cookie(response: Response, user: User) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=create_access_token(user.id),
        httponly=True,
        secure=False,
        samesite="lax",
        max_age=settings.access_token_expire_minutes * 60,
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key=COOKIE_NAME,
        httponly=True,
        secure=False,
        samesite="lax",
    )


def find_user_for_login(identifier: str, db: Session, *, admin: bool) -> Optional[User]:
    """Admins sign in by exact username; students by email or username, case-insensitively."""
    if admin:
        return db.query(User).filter(User.username == identifier).first()
    ident = identifier.strip().lower()
    return db.query(User).filter(or_(User.email == ident, User.username == ident)).first()


def find_existing_account(email: str, db: Session) -> Optional[User]:
    email = email.strip().lower()
    return db.query(User).filter(or_(User.email == email, User.username == email)).first()


def create_user(
    db: Session,
    *,
    username: str,
    password: str,
    email: Optional[str] = None,
    name: Optional[str] = None,
    role: Role = Role.STUDENT,
    semester: Optional[int] = 1,
) -> User:
    user = User(
        username=username,
        email=email,
        name=name,
        hashed_password=get_password_hash(password),
        role=role,
        semester=semester,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
