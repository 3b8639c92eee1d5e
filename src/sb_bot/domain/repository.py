"""Repository Protocol for bot tasks."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_bot.domain.models import BotTask


class BotTaskRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, task: BotTask) -> BotTask: ...

    async def get(self, db: AsyncSession, task_id: str) -> BotTask | None: ...

    async def mark_completed(
        self, db: AsyncSession, task_id: str, listener_id: str
    ) -> BotTask | None:
        """Flip completed exactly once. None when already completed or not owned."""
        ...

    async def list_for_listener(
        self, db: AsyncSession, listener_id: str, completed: bool | None, limit: int
    ) -> list[BotTask]: ...
