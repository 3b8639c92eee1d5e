"""Repository Protocol — dependency inversion for testability.

Only the lifecycle service writes battle status through this Protocol; team
aggregates are written by sb_scoring.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_battle.domain.models import Battle

# Row lock modes for get(): None = plain read.
LOCK_SHARE = "share"
LOCK_UPDATE = "update"


class BattleRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, battle: Battle) -> Battle: ...

    async def get(
        self, db: AsyncSession, battle_id: str, lock: str | None = None
    ) -> Battle | None: ...

    async def list_battles(
        self, db: AsyncSession, status: str | None, limit: int
    ) -> list[Battle]: ...

    async def assign_challenger(
        self, db: AsyncSession, battle_id: str, artist_id: str, team_name: str
    ) -> bool: ...

    async def update_status(
        self,
        db: AsyncSession,
        battle_id: str,
        from_status: str,
        to_status: str,
        started_at: datetime | None = None,
        ended_at: datetime | None = None,
        cancel_reason: str | None = None,
    ) -> bool: ...

    async def list_due_to_start(self, db: AsyncSession, now: datetime) -> list[str]: ...

    async def list_due_to_end(self, db: AsyncSession, now: datetime) -> list[str]: ...
