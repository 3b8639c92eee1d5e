"""BotTaskService — assign listening tasks and pay for completed ones.

Completing a task flips ``completed`` and appends one BOT_EARNING entry in
the same transaction. A repeated completion returns the task with
credited=0 and writes nothing.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_bot.application.schemas import (
    AssignTaskRequest,
    BotTaskListResponse,
    BotTaskResponse,
    CompleteTaskResponse,
)
from src.sb_bot.domain.models import BotTask
from src.sb_bot.domain.repository import BotTaskRepositoryProtocol
from src.sb_bot.infrastructure.persistence import BotTaskRepository
from src.sb_common.enums import LedgerReason
from src.sb_common.errors import BotTaskNotFoundError
from src.sb_common.id_generator import generate_id
from src.sb_ledger.domain.repository import LedgerRepositoryProtocol
from src.sb_ledger.infrastructure.persistence import LedgerRepository

logger = logging.getLogger(__name__)


class BotTaskService:
    def __init__(
        self,
        repo: BotTaskRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
    ) -> None:
        self._repo: BotTaskRepositoryProtocol = repo or BotTaskRepository()
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()

    async def assign_task(
        self, db: AsyncSession, req: AssignTaskRequest
    ) -> BotTaskResponse:
        task = BotTask(
            id=generate_id("bot_"),
            listener_id=req.listener_id,
            song_id=req.song_id,
            coins_awarded=req.coins_awarded,
        )
        try:
            created = await self._repo.insert(db, task)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Bot task assigned: task=%s listener=%s coins=%d",
            created.id,
            created.listener_id,
            created.coins_awarded,
        )
        return BotTaskResponse.from_domain(created)

    async def complete_task(
        self, db: AsyncSession, task_id: str, listener_id: str
    ) -> CompleteTaskResponse:
        try:
            task = await self._repo.mark_completed(db, task_id, listener_id)
            if task is None:
                existing = await self._repo.get(db, task_id)
                # Another listener's task is reported as missing.
                if existing is None or existing.listener_id != listener_id:
                    raise BotTaskNotFoundError(task_id)
                await db.rollback()
                logger.info("Bot task idempotency hit: task=%s", task_id)
                return CompleteTaskResponse(
                    task=BotTaskResponse.from_domain(existing), credited=0
                )

            entry = await self._ledger.append(
                db,
                listener_id,
                task.coins_awarded,
                LedgerReason.BOT_EARNING,
                reference_id=task.id,
                description=f"Bot task completed: song {task.song_id}",
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Bot task completed: task=%s listener=%s coins=%d",
            task_id,
            listener_id,
            task.coins_awarded,
        )
        return CompleteTaskResponse(
            task=BotTaskResponse.from_domain(task),
            credited=task.coins_awarded,
            balance_after=entry.balance_after,
        )

    async def list_tasks(
        self,
        db: AsyncSession,
        listener_id: str,
        completed: bool | None,
        limit: int,
    ) -> BotTaskListResponse:
        tasks = await self._repo.list_for_listener(db, listener_id, completed, limit)
        return BotTaskListResponse(items=[BotTaskResponse.from_domain(t) for t in tasks])
