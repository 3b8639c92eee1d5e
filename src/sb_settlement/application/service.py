"""SettlementService — pays out or refunds a battle inside the caller's transaction.

Both operations claim the battle_settlements row first. A second call for the
same battle finds the claim taken, writes nothing and returns the stored
record, so retries from end() and the scheduler are harmless.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sb_battle.domain.models import Battle
from src.sb_common.enums import LedgerReason, SettlementKind
from src.sb_common.errors import InternalError
from src.sb_ledger.domain.repository import LedgerRepositoryProtocol
from src.sb_ledger.infrastructure.persistence import LedgerRepository
from src.sb_settlement.domain.models import Settlement
from src.sb_settlement.domain.payout import compute_payouts
from src.sb_settlement.domain.repository import SettlementRepositoryProtocol
from src.sb_settlement.infrastructure.persistence import SettlementRepository

logger = logging.getLogger(__name__)


class SettlementService:
    def __init__(
        self,
        ledger_repo: LedgerRepositoryProtocol | None = None,
        settlement_repo: SettlementRepositoryProtocol | None = None,
        winner_share_bps: int | None = None,
        platform_account_id: str | None = None,
    ) -> None:
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()
        self._settlements: SettlementRepositoryProtocol = (
            settlement_repo or SettlementRepository()
        )
        self._winner_share_bps = (
            winner_share_bps if winner_share_bps is not None
            else settings.WINNER_SHARE_BPS
        )
        self._platform_account_id = platform_account_id or settings.PLATFORM_ACCOUNT_ID

    async def settle(self, db: AsyncSession, battle: Battle) -> Settlement:
        plan = compute_payouts(battle, self._winner_share_bps, self._platform_account_id)
        record = Settlement(
            battle_id=battle.id,
            kind=SettlementKind.PAYOUT.value,
            winner_side=plan.winner_side,
            total_paid=plan.total_paid,
            platform_share=plan.platform_share,
        )
        if not await self._settlements.claim(db, record):
            return await self._existing(db, battle.id)

        for payout in plan.payouts:
            await self._ledger.append(
                db,
                payout.account_id,
                payout.amount,
                LedgerReason.BATTLE_PAYOUT,
                battle_id=battle.id,
                description=f"Battle payout ({plan.winner_side})",
            )
        logger.info(
            "Battle settled: battle=%s winner=%s score=%d:%d pot=%d platform=%d",
            battle.id,
            plan.winner_side,
            battle.team_a.score,
            battle.team_b.score,
            battle.total_pot,
            plan.platform_share,
        )
        return record

    async def refund(self, db: AsyncSession, battle: Battle) -> Settlement:
        fees = await self._ledger.list_battle_entries(
            db, battle.id, LedgerReason.ENTRY_FEE
        )
        record = Settlement(
            battle_id=battle.id,
            kind=SettlementKind.REFUND.value,
            winner_side=None,
            total_paid=sum(-fee.amount for fee in fees),
            platform_share=0,
        )
        if not await self._settlements.claim(db, record):
            return await self._existing(db, battle.id)

        for fee in fees:
            await self._ledger.append(
                db,
                fee.account_id,
                -fee.amount,
                LedgerReason.REFUND,
                battle_id=battle.id,
                reference_id=str(fee.id),
                description="Entry fee refund",
            )
        logger.info(
            "Battle refunded: battle=%s entries=%d total=%d",
            battle.id,
            len(fees),
            record.total_paid,
        )
        return record

    async def _existing(self, db: AsyncSession, battle_id: str) -> Settlement:
        existing = await self._settlements.get(db, battle_id)
        if existing is None:
            raise InternalError(f"Settlement claim conflict without record: {battle_id}")
        logger.info(
            "Settlement idempotency hit: battle=%s kind=%s", battle_id, existing.kind
        )
        return existing
