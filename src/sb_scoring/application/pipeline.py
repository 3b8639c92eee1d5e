"""ScoringPipeline — asynchronous fold of accepted stream events.

The ingestor hands each scored event to ``publish`` and returns immediately;
worker tasks drain an asyncio.Queue and apply every unit in its own
transaction. Delivery is at-least-once:

  - a failed apply is re-queued up to SCORING_MAX_ATTEMPTS times
  - anything still unapplied (full queue, crash, exhausted retries) is picked
    up by ``recover`` on startup and by ``apply_pending`` when a battle ends

``apply_unit`` is idempotent per event id, so duplicates are harmless.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sb_common.database import async_session_factory
from src.sb_scoring.domain.models import ApplyResult, ScoringUnit, TeamTotals
from src.sb_scoring.domain.repository import ScoreRepositoryProtocol
from src.sb_scoring.domain.service import apply_unit
from src.sb_scoring.infrastructure.broadcaster import RedisScoreBroadcaster
from src.sb_scoring.infrastructure.persistence import ScoreRepository

logger = logging.getLogger(__name__)

_PENDING_BATCH = 500


class ScoreBroadcasterProtocol(Protocol):
    async def publish(self, totals: TeamTotals) -> None: ...


class ScoringPipeline:
    def __init__(
        self,
        session_factory: Callable[[], Any] | None = None,
        repo: ScoreRepositoryProtocol | None = None,
        broadcaster: ScoreBroadcasterProtocol | None = None,
        points_per_stream: int | None = None,
        workers: int | None = None,
        max_attempts: int | None = None,
        queue_maxsize: int | None = None,
    ) -> None:
        self._session_factory = session_factory or async_session_factory
        self._repo: ScoreRepositoryProtocol = repo or ScoreRepository()
        self._broadcaster: ScoreBroadcasterProtocol = broadcaster or RedisScoreBroadcaster()
        self.points_per_stream = (
            points_per_stream if points_per_stream is not None
            else settings.STREAM_POINTS_PER_PLAY
        )
        self._worker_count = workers or settings.SCORING_WORKERS
        self._max_attempts = max_attempts or settings.SCORING_MAX_ATTEMPTS
        self._queue: asyncio.Queue[tuple[ScoringUnit, int]] = asyncio.Queue(
            maxsize=queue_maxsize or settings.SCORING_QUEUE_MAXSIZE
        )
        self._tasks: list[asyncio.Task[None]] = []

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def publish(self, unit: ScoringUnit) -> bool:
        """Enqueue without blocking. Returns False when the queue is full."""
        return self._enqueue(unit, 1)

    def _enqueue(self, unit: ScoringUnit, attempt: int) -> bool:
        try:
            self._queue.put_nowait((unit, attempt))
        except asyncio.QueueFull:
            logger.warning(
                "Scoring queue full, left for recovery: event=%s battle=%s",
                unit.event_id,
                unit.battle_id,
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------

    async def apply(self, unit: ScoringUnit) -> ApplyResult:
        """Apply one unit in its own transaction, then broadcast new totals."""
        async with self._session_factory() as db:
            try:
                result = await apply_unit(self._repo, db, unit, self.points_per_stream)
                await db.commit()
            except Exception:
                await db.rollback()
                raise
        if result.totals is not None:
            await self._broadcaster.publish(result.totals)
        return result

    async def apply_pending(self, db: AsyncSession, battle_id: str) -> int:
        """Apply every accepted-but-unapplied event of a battle in the caller's
        transaction. Used by end() so settlement reads complete aggregates."""
        applied = 0
        while True:
            units = await self._repo.list_unapplied(db, battle_id, _PENDING_BATCH)
            if not units:
                break
            for unit in units:
                result = await apply_unit(self._repo, db, unit, self.points_per_stream)
                if result.applied:
                    applied += 1
            if len(units) < _PENDING_BATCH:
                break
        if applied:
            logger.info("Applied %d pending stream events: battle=%s", applied, battle_id)
        return applied

    async def recover(self) -> int:
        """Re-enqueue scored events of live battles that were never applied."""
        async with self._session_factory() as db:
            units = await self._repo.list_unapplied(
                db, None, settings.SCORING_QUEUE_MAXSIZE
            )
        queued = sum(1 for unit in units if self.publish(unit))
        if queued:
            logger.info("Scoring recovery re-queued %d events", queued)
        return queued

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------

    async def start(self) -> None:
        if self._tasks:
            return
        for i in range(self._worker_count):
            self._tasks.append(
                asyncio.create_task(self._worker(), name=f"scoring-worker-{i}")
            )
        logger.info("Scoring pipeline started with %d workers", self._worker_count)

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    async def join(self) -> None:
        """Wait until every queued unit has been processed."""
        await self._queue.join()

    async def _worker(self) -> None:
        while True:
            unit, attempt = await self._queue.get()
            try:
                await self.apply(unit)
            except Exception:
                if attempt < self._max_attempts:
                    logger.warning(
                        "Scoring apply failed, retrying: event=%s attempt=%d",
                        unit.event_id,
                        attempt,
                        exc_info=True,
                    )
                    self._enqueue(unit, attempt + 1)
                else:
                    logger.error(
                        "Scoring apply gave up, left for recovery: event=%s",
                        unit.event_id,
                        exc_info=True,
                    )
            finally:
                self._queue.task_done()


_pipeline: ScoringPipeline | None = None


def get_scoring_pipeline() -> ScoringPipeline:
    global _pipeline  # noqa: PLW0603
    if _pipeline is None:
        _pipeline = ScoringPipeline()
    return _pipeline
