from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from dotenv import load_dotenv
load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./notes_portal.db"
    secret_key: str = "dev-secret-change-in-production"
    access_token_expire_minutes: int = 60 * 24  # 1 day

    uploads_dir: str = "public/uploads"
    media_backend: str = "local"  # local|hosted
    media_cloud_name: str = ""
    media_api_key: str = ""
    media_api_secret: str = ""
    media_folder: str = "semester_notes"

    score_scheduler_enabled: bool = True
    score_interval_seconds: float = 60 * 60
    score_initial_delay_seconds: float = 5

    log_level: str = "INFO"
    log_dir: str = "logs"
    log_console: bool = True

    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]


settings = Settings()


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url:
        # one shared connection, otherwise every thread sees an empty database
        kwargs["poolclass"] = StaticPool
    return kwargs


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def create_db():
    # models must be imported so their tables are registered on Base
    import portal.models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def reset_db():
    """Drop every table and recreate the empty schema."""
    Base.metadata.drop_all(bind=engine)
    create_db()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
