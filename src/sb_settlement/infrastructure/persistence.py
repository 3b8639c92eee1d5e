"""SettlementRepository — battle_settlements table access (raw SQL).

``claim`` is INSERT ... ON CONFLICT (battle_id) DO NOTHING RETURNING: the
first settlement of a battle wins, every later one sees 0 rows. Because the
insert happens in the same transaction as the ledger entries, a rolled-back
settlement leaves no record behind and can be retried.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_settlement.domain.models import Settlement

_CLAIM_SQL = text("""
    INSERT INTO battle_settlements
        (battle_id, kind, winner_side, total_paid, platform_share)
    VALUES
        (:battle_id, :kind, :winner_side, :total_paid, :platform_share)
    ON CONFLICT (battle_id) DO NOTHING
    RETURNING battle_id
""")

_GET_SQL = text("""
    SELECT battle_id, kind, winner_side, total_paid, platform_share, created_at
    FROM battle_settlements
    WHERE battle_id = :battle_id
""")


class SettlementRepository:
    async def claim(self, db: AsyncSession, settlement: Settlement) -> bool:
        result = await db.execute(
            _CLAIM_SQL,
            {
                "battle_id": settlement.battle_id,
                "kind": settlement.kind,
                "winner_side": settlement.winner_side,
                "total_paid": settlement.total_paid,
                "platform_share": settlement.platform_share,
            },
        )
        return result.fetchone() is not None

    async def get(self, db: AsyncSession, battle_id: str) -> Settlement | None:
        row = (await db.execute(_GET_SQL, {"battle_id": battle_id})).fetchone()
        if row is None:
            return None
        return Settlement(
            battle_id=row.battle_id,
            kind=row.kind,
            winner_side=row.winner_side,
            total_paid=row.total_paid,
            platform_share=row.platform_share,
            created_at=row.created_at,
        )
