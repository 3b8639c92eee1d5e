"""LedgerApplicationService — read side of the coin ledger.

Balance reads return the cached fold kept on coin_accounts; appends are done
by the owning operation (battle join, settlement, bot task) through the
repository inside that operation's transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_common.coins import coins_to_display
from src.sb_ledger.application.schemas import (
    AccountAuditResponse,
    BalanceResponse,
    LedgerEntryItem,
    LedgerResponse,
    cursor_decode,
    cursor_encode,
)
from src.sb_ledger.domain.repository import LedgerRepositoryProtocol
from src.sb_ledger.infrastructure.persistence import LedgerRepository

logger = logging.getLogger(__name__)


class LedgerApplicationService:
    def __init__(self, repo: LedgerRepositoryProtocol | None = None) -> None:
        self._repo: LedgerRepositoryProtocol = repo or LedgerRepository()

    async def get_balance(self, db: AsyncSession, account_id: str) -> BalanceResponse:
        account = await self._repo.get_account(db, account_id)
        # Accounts are created lazily on first append; no row means no entries.
        balance = account.balance if account is not None else 0
        return BalanceResponse.from_coins(account_id, balance)

    async def list_entries(
        self,
        db: AsyncSession,
        account_id: str,
        cursor: str | None,
        limit: int,
        reason: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_entries(
            db, account_id, cursor_id, limit + 1, reason
        )
        has_more = len(entries) > limit
        page = entries[:limit]

        items = [
            LedgerEntryItem(
                id=e.id,
                reason=e.reason,
                amount=e.amount,
                amount_display=coins_to_display(e.amount),
                balance_after=e.balance_after,
                battle_id=e.battle_id,
                reference_id=e.reference_id,
                description=e.description,
                created_at=e.created_at.isoformat() if e.created_at else "",
            )
            for e in page
        ]

        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(items=items, next_cursor=next_cursor, has_more=has_more)

    async def verify_account(
        self, db: AsyncSession, account_id: str
    ) -> AccountAuditResponse:
        """Check that the cached balance equals the fold of the account's entries."""
        account = await self._repo.get_account(db, account_id)
        cached = account.balance if account is not None else 0
        ledger_sum = await self._repo.sum_entries(db, account_id)
        consistent = cached == ledger_sum and cached >= 0
        if not consistent:
            logger.error(
                "Ledger fold mismatch: account=%s cached=%d sum=%d",
                account_id,
                cached,
                ledger_sum,
            )
        return AccountAuditResponse(
            account_id=account_id,
            cached_balance=cached,
            ledger_sum=ledger_sum,
            consistent=consistent,
        )
