from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from portal.config import get_db
from portal.models.models import Role, User
from portal.schemas.auth_schemas import (
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RegisterRequest,
    RegisterResponse,
    RegisterStatusResponse,
)
from portal.schemas.user_schemas import UserResponse
from portal.services.site_settings import registration_open, student_login_enabled
from portal.utils.auth import (
    clear_auth_cookie,
    create_user,
    find_existing_account,
    find_user_for_login,
    get_current_user,
    set_auth_cookie,
)
from portal.utils.common import user_response
from portal.utils.jwt import password_too_long, verify_password
from portal.utils.logger import get_logger

logger = get_logger(__name__)

auth_routes = APIRouter()


@auth_routes.post("/login")
def login(request: LoginRequest, response: Response, db: Session = Depends(get_db)) -> LoginResponse:
    """Authenticate on the student or the admin portal and set the HTTP-only cookie."""
    as_admin = request.login_type == "admin"

    if not as_admin and not student_login_enabled(db):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Student login is currently disabled by the Administrator.",
        )

    user = find_user_for_login(request.username, db, admin=as_admin)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not as_admin and user.role == Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admins must use the Dedicated Admin Portal.")
    if as_admin and user.role != Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access Denied: This portal is for Admins only.")
    if not verify_password(request.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    set_auth_cookie(response, user)
    logger.info("login user_id=%s role=%s", user.id, user.role.value)
    return LoginResponse(message="Login successful", token_set=True, role=user.role.value)


@auth_routes.get("/register")
def register_status(db: Session = Depends(get_db)) -> RegisterStatusResponse:
    """Whether the register form should be offered, and whether this is first-run setup."""
    if db.query(User).count() == 0:
        return RegisterStatusResponse(
            registration_open=True,
            is_setup=True,
            message="System Setup: Create Main Admin Account.",
        )
    if not registration_open(db):
        return RegisterStatusResponse(registration_open=False, is_setup=False, message="Registration is closed.")
    return RegisterStatusResponse(registration_open=True, is_setup=False)


@auth_routes.post("/register")
def register(request: RegisterRequest, db: Session = Depends(get_db)) -> RegisterResponse:
    """
    Register an account. The very first account becomes the main admin ("admin");
    every later one is a student whose username is their email.
    """
    is_setup = db.query(User).count() == 0
    if not is_setup and not registration_open(db):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Registration is closed.")
    if not request.email or not request.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing fields")
    if password_too_long(request.password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password too long")
    if find_existing_account(request.email, db):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered.")

    email = request.email.strip().lower()
    try:
        if is_setup:
            user = create_user(
                db,
                username="admin",
                password=request.password,
                email=email,
                name=request.name or "Admin",
                role=Role.ADMIN,
                semester=None,
            )
        else:
            user = create_user(
                db,
                username=email,
                password=request.password,
                email=email,
                name=request.name,
                role=Role.STUDENT,
                semester=request.semester or 1,
            )
    except IntegrityError:
        db.rollback()
        logger.warning("registration rejected by unique constraint email=%s", email)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Registration failed.")

    logger.info("registered user_id=%s role=%s", user.id, user.role.value)
    return RegisterResponse(message="Registration successful", role=user.role.value, username=user.username)


@auth_routes.post("/logout")
def logout(response: Response) -> LogoutResponse:
    """Clear the authentication cookie."""
    clear_auth_cookie(response)
    return LogoutResponse(message="Logout successful")


@auth_routes.get("/me")
def get_current_user_info(current_user: User = Depends(get_current_user)) -> UserResponse:
    """The signed-in user as currently stored."""
    return user_response(current_user)
