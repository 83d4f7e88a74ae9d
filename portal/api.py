import time
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.responses import JSONResponse, Response
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from portal.config import SessionLocal, create_db, settings
from portal.routes.admin_routes import admin_routes
from portal.routes.auth_routes import auth_routes
from portal.routes.comment_routes import comment_routes
from portal.routes.contribution_routes import contribution_routes
from portal.routes.goal_routes import goal_routes
from portal.routes.index_routes import index_routes
from portal.routes.progress_routes import progress_routes
from portal.routes.user_routes import user_routes
from portal.services.score_scheduler import ScoreScheduler
from portal.utils.logger import clear_request_id, configure_logging, set_request_id

logger = configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, then own the leaderboard scheduler for the life of the process."""
    create_db()
    app.state.score_scheduler = ScoreScheduler(
        SessionLocal,
        interval_seconds=settings.score_interval_seconds,
        initial_delay_seconds=settings.score_initial_delay_seconds,
    )
    if settings.score_scheduler_enabled:
        app.state.score_scheduler.start()
    else:
        logger.info("score scheduler disabled; scores change only on note approval")
    try:
        yield
    finally:
        await app.state.score_scheduler.stop()


app = FastAPI(title="Semester Notes Portal", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

# topic attachments at /uploads/<name>, local media at /uploads/media/<name>
Path(settings.uploads_dir).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.uploads_dir), name="uploads")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    rid = set_request_id(request.headers.get("x-request-id"))
    logger.debug("%s %s started", request.method, request.url.path)
    started = time.perf_counter()
    try:
        response: Response = await call_next(request)
    except Exception:
        logger.exception("%s %s crashed", request.method, request.url.path)
        raise
    else:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %s (%.1fms)", request.method, request.url.path, response.status_code, elapsed_ms)
        response.headers["x-request-id"] = rid
        return response
    finally:
        clear_request_id()


@app.exception_handler(HTTPException)
async def on_http_error(request: Request, exc: HTTPException) -> JSONResponse:
    level = "error" if exc.status_code >= 500 else "warning"
    getattr(logger, level)("%s %s rejected %s: %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def on_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("%s %s invalid input: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(Exception)
async def on_unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    # the stack trace goes to the log only
    logger.exception("%s %s failed", request.method, request.url.path)
    return JSONResponse(status_code=HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Internal Server Error"})


app.include_router(index_routes)
app.include_router(auth_routes)
app.include_router(progress_routes)
app.include_router(goal_routes)
app.include_router(comment_routes)
app.include_router(user_routes)
app.include_router(admin_routes, prefix="/admin")
app.include_router(contribution_routes, prefix="/contribution")


def main():
    uvicorn.run("portal.api:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
