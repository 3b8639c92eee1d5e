"""Repository Protocol for settlement records."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_settlement.domain.models import Settlement


class SettlementRepositoryProtocol(Protocol):
    async def claim(self, db: AsyncSession, settlement: Settlement) -> bool:
        """Insert the record. False when the battle was already settled."""
        ...

    async def get(self, db: AsyncSession, battle_id: str) -> Settlement | None: ...
