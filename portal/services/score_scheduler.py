"""
Schedules leaderboard recomputation.

One pass runs shortly after start and then on a fixed interval. The same pass is
exposed as recompute_now() so event hooks (community note approval) and tests
can trigger it synchronously without waiting on the timer.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Callable, Optional

from fastapi import Request
from sqlalchemy.orm import Session

from portal.services.scoring_service import ScoreReport, recalculate_scores
from portal.utils.logger import get_logger

logger = get_logger(__name__)


class ScoreScheduler:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        interval_seconds: float = 3600,
        initial_delay_seconds: float = 5,
    ):
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self.initial_delay_seconds = initial_delay_seconds
        self.last_report: Optional[ScoreReport] = None
        self._task: Optional[asyncio.Task] = None

    def recompute_now(self, db: Optional[Session] = None) -> Optional[ScoreReport]:
        """
        Run a full recompute. Uses db when given, else a session of its own.
        Failures are logged and leave the stored scores as they were; returns None then.
        """
        own_session = db is None
        session = self.session_factory() if own_session else db
        try:
            report = recalculate_scores(session)
            self.last_report = report
            return report
        except Exception:
            logger.exception("leaderboard update failed")
            session.rollback()
            return None
        finally:
            if own_session:
                session.close()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the timer on the running event loop. No-op when already started."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="score-recompute")
        logger.info(
            "score scheduler started interval=%ss initial_delay=%ss",
            self.interval_seconds,
            self.initial_delay_seconds,
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("score scheduler stopped")

    async def _run(self) -> None:
        await asyncio.sleep(self.initial_delay_seconds)
        while True:
            # the pass is blocking database work; keep it off the event loop
            await asyncio.to_thread(self.recompute_now)
            await asyncio.sleep(self.interval_seconds)


def get_score_scheduler(request: Request) -> ScoreScheduler:
    """FastAPI dependency: the scheduler owned by the running app."""
    return request.app.state.score_scheduler
