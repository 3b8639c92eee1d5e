"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock or in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.

Every mutating method runs inside the CALLER's transaction, so a battle
operation and its ledger entries commit or roll back together.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_ledger.domain.models import CoinAccount, LedgerEntry


class LedgerRepositoryProtocol(Protocol):
    async def get_account(
        self, db: AsyncSession, account_id: str
    ) -> CoinAccount | None: ...

    async def append(
        self,
        db: AsyncSession,
        account_id: str,
        amount: int,
        reason: str,
        battle_id: str | None = None,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> LedgerEntry: ...

    async def list_entries(
        self,
        db: AsyncSession,
        account_id: str,
        cursor_id: int | None,
        limit: int,
        reason: str | None,
    ) -> list[LedgerEntry]: ...

    async def list_battle_entries(
        self, db: AsyncSession, battle_id: str, reason: str
    ) -> list[LedgerEntry]: ...

    async def sum_entries(self, db: AsyncSession, account_id: str) -> int: ...
