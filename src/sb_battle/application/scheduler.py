"""BattleScheduler — time-driven lifecycle transitions.

Every SCHEDULER_INTERVAL_SECONDS:
  - start funded SCHEDULED battles whose scheduled_at has passed
  - end LIVE battles whose started_at + duration has passed

Each battle is handled in its own session so one failure never blocks the
rest. Delivery is at-least-once: a battle that fails to settle stays LIVE and
is retried on the next tick; settlement idempotency makes repeats harmless.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from config.settings import settings
from src.sb_battle.application.service import (
    BattleLifecycleService,
    get_lifecycle_service,
)
from src.sb_battle.domain.repository import BattleRepositoryProtocol
from src.sb_battle.infrastructure.persistence import BattleRepository
from src.sb_common.database import async_session_factory
from src.sb_common.datetime_utils import utc_now
from src.sb_common.errors import AppError

logger = logging.getLogger(__name__)


class BattleScheduler:
    def __init__(
        self,
        lifecycle: BattleLifecycleService | None = None,
        battle_repo: BattleRepositoryProtocol | None = None,
        session_factory: Callable[[], Any] | None = None,
        interval_seconds: float | None = None,
    ) -> None:
        self._lifecycle = lifecycle or get_lifecycle_service()
        self._battles: BattleRepositoryProtocol = battle_repo or BattleRepository()
        self._session_factory = session_factory or async_session_factory
        self._interval = interval_seconds or settings.SCHEDULER_INTERVAL_SECONDS
        self._task: asyncio.Task[None] | None = None

    async def tick(self) -> tuple[int, int]:
        """Run one pass. Returns (started, ended)."""
        now = utc_now()
        async with self._session_factory() as db:
            due_start = await self._battles.list_due_to_start(db, now)
            due_end = await self._battles.list_due_to_end(db, now)

        started = 0
        for battle_id in due_start:
            async with self._session_factory() as db:
                try:
                    await self._lifecycle.start(db, battle_id)
                    started += 1
                except AppError as e:
                    # Usually a race with a manual start or cancel.
                    logger.warning(
                        "Scheduled start skipped: battle=%s code=%d %s",
                        battle_id,
                        e.code,
                        e.message,
                    )
                except Exception:
                    logger.exception("Scheduled start failed: battle=%s", battle_id)

        ended = 0
        for battle_id in due_end:
            async with self._session_factory() as db:
                try:
                    await self._lifecycle.end(db, battle_id)
                    ended += 1
                except AppError as e:
                    logger.warning(
                        "Scheduled end skipped: battle=%s code=%d %s",
                        battle_id,
                        e.code,
                        e.message,
                    )
                except Exception:
                    logger.exception("Scheduled end failed: battle=%s", battle_id)

        if started or ended:
            logger.info("Scheduler tick: started=%d ended=%d", started, ended)
        return started, ended

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run(), name="battle-scheduler")
        logger.info("Battle scheduler started, interval=%.1fs", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception:
                logger.exception("Scheduler tick failed")
            await asyncio.sleep(self._interval)
