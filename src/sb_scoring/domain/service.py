"""Fold one accepted stream event into its team's aggregates.

Runs inside the caller's transaction. Idempotent per event id: the applied
marker and the counter increment commit together, so a redelivered unit
finds the marker and changes nothing.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_common.enums import BattleStatus
from src.sb_scoring.domain.models import ApplyResult, ScoringUnit
from src.sb_scoring.domain.repository import ScoreRepositoryProtocol

logger = logging.getLogger(__name__)


async def apply_unit(
    repo: ScoreRepositoryProtocol,
    db: AsyncSession,
    unit: ScoringUnit,
    points: int,
) -> ApplyResult:
    # Shared battle lock: concurrent scorers proceed together, end/cancel
    # (FOR UPDATE) waits for them and then freezes the aggregates.
    status = await repo.lock_battle_shared(db, unit.battle_id)
    if status is None:
        logger.warning("Scoring skipped, battle missing: event=%s battle=%s",
                       unit.event_id, unit.battle_id)
        return ApplyResult(applied=False)

    live = status == BattleStatus.LIVE
    if not await repo.mark_applied(db, unit.event_id, unit.battle_id, points if live else 0):
        logger.debug("Scoring idempotency hit: event=%s", unit.event_id)
        return ApplyResult(applied=False)

    if not live:
        logger.info("Scoring frozen: event=%s battle=%s status=%s",
                    unit.event_id, unit.battle_id, status)
        return ApplyResult(applied=True)

    new_supporter = await repo.mark_supporter(
        db, unit.battle_id, unit.listener_id, unit.team_side
    )
    totals = await repo.increment_team(
        db, unit.battle_id, unit.team_side, points, 1 if new_supporter else 0
    )
    return ApplyResult(
        applied=True, points=points, new_supporter=new_supporter, totals=totals
    )
