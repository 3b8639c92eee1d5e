"""Repository Protocol for team aggregates — the only writer of score/supporters."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_scoring.domain.models import ScoringUnit, TeamTotals


class ScoreRepositoryProtocol(Protocol):
    async def lock_battle_shared(
        self, db: AsyncSession, battle_id: str
    ) -> str | None: ...

    async def mark_applied(
        self, db: AsyncSession, event_id: str, battle_id: str, points: int
    ) -> bool: ...

    async def mark_supporter(
        self, db: AsyncSession, battle_id: str, listener_id: str, side: str
    ) -> bool: ...

    async def increment_team(
        self,
        db: AsyncSession,
        battle_id: str,
        side: str,
        points: int,
        supporters: int,
    ) -> TeamTotals | None: ...

    async def list_unapplied(
        self, db: AsyncSession, battle_id: str | None, limit: int
    ) -> list[ScoringUnit]: ...
