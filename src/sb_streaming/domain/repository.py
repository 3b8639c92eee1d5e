"""Repository Protocol for the append-only stream event log."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_scoring.domain.models import ScoringUnit
from src.sb_streaming.domain.models import StreamEvent


class StreamEventRepositoryProtocol(Protocol):
    async def get_by_nonce(
        self, db: AsyncSession, listener_id: str, battle_id: str, client_nonce: str
    ) -> StreamEvent | None: ...

    async def claim_replay_window(
        self,
        db: AsyncSession,
        listener_id: str,
        battle_id: str,
        song_id: str,
        received_at: datetime,
        window_seconds: int,
    ) -> tuple[bool, datetime]:
        """(True, received_at) when this play opens a new window, otherwise
        (False, start of the window it falls into)."""
        ...

    async def insert_scored(self, db: AsyncSession, event: StreamEvent) -> bool: ...

    async def insert_audit(self, db: AsyncSession, event: StreamEvent) -> bool: ...


class ScoringPublisherProtocol(Protocol):
    def publish(self, unit: ScoringUnit) -> bool: ...
