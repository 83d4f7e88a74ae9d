"""
Site-wide switches.

Two independent gates exist:
- the main admin's is_registration_enabled flag opens or closes registration;
- SystemSettings.student_login_enabled allows or blocks student logins.
"""

from typing import Optional

from sqlalchemy.orm import Session

from portal.models.models import Role, SystemSettings, User


def get_system_settings(db: Session) -> SystemSettings:
    """The singleton settings row, created with defaults on first use."""
    row = db.query(SystemSettings).order_by(SystemSettings.id.asc()).first()
    if row is None:
        row = SystemSettings(student_login_enabled=True)
        db.add(row)
        db.commit()
        db.refresh(row)
    return row


def get_main_admin(db: Session) -> Optional[User]:
    """The first admin ever created."""
    return (
        db.query(User)
        .filter(User.role == Role.ADMIN)
        .order_by(User.created_at.asc(), User.id.asc())
        .first()
    )


def is_main_admin(db: Session, user: User) -> bool:
    main = get_main_admin(db)
    return main is not None and main.id == user.id


def registration_open(db: Session) -> bool:
    main = get_main_admin(db)
    return main is None or bool(main.is_registration_enabled)


def student_login_enabled(db: Session) -> bool:
    row = db.query(SystemSettings).order_by(SystemSettings.id.asc()).first()
    return row is None or bool(row.student_login_enabled)
