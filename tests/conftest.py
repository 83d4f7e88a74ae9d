"""
Pytest configuration and shared fixtures for the test suite.
Points settings at throwaway locations before anything from portal is imported.
"""
import os
import sys
import tempfile
from pathlib import Path

_scratch = Path(tempfile.mkdtemp(prefix="notes-portal-tests-"))
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SCORE_SCHEDULER_ENABLED", "false")
os.environ.setdefault("LOG_CONSOLE", "false")
os.environ.setdefault("LOG_DIR", str(_scratch / "logs"))
os.environ.setdefault("UPLOADS_DIR", str(_scratch / "uploads"))
os.environ.setdefault("MEDIA_BACKEND", "local")

project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


# ----- In-memory DB (for tests that need DB without touching real DB) -----
@pytest.fixture
def in_memory_engine():
    """In-memory SQLite engine shared by every session and thread of one test."""
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )


@pytest.fixture
def session_factory(in_memory_engine):
    import portal.models  # noqa: F401  registers tables
    from portal.config import Base
    Base.metadata.create_all(in_memory_engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=in_memory_engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


# ----- Factories -----
@pytest.fixture
def make_user(db_session):
    from portal.models.models import Role, User
    from portal.utils.jwt import get_password_hash

    def _make(username: str, role=Role.STUDENT, password: str = "pass123", score: int = 0, **kwargs):
        user = User(
            username=username,
            email=kwargs.pop("email", f"{username}@example.com"),
            hashed_password=get_password_hash(password),
            role=role,
            score=score,
            **kwargs,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_subject(db_session):
    from portal.models.models import Subject

    def _make(name: str, semester: int | None = 1):
        subject = Subject(name=name, description=f"{name} notes", semester=semester)
        db_session.add(subject)
        db_session.commit()
        db_session.refresh(subject)
        return subject

    return _make


@pytest.fixture
def make_topic(db_session):
    from portal.models.models import Topic

    def _make(subject, title: str, chapter: str = "Chapter 1"):
        topic = Topic(subject_id=subject.id, chapter_name=chapter, title=title, content=f"<p>{title}</p>")
        db_session.add(topic)
        db_session.commit()
        db_session.refresh(topic)
        return topic

    return _make


@pytest.fixture
def make_paper(db_session):
    from portal.models.models import Paper

    def _make(subject, title: str = "End Semester", year: int = 2023, images=None):
        paper = Paper(subject_id=subject.id, title=title, year=year, images=images or [])
        db_session.add(paper)
        db_session.commit()
        db_session.refresh(paper)
        return paper

    return _make
