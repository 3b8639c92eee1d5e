"""BattleLifecycleService — owns every battle status change.

Each mutating operation locks the battle row FOR UPDATE, checks the state
machine, writes its ledger entries through the ledger repository, and commits
once. Stream ingestion and scoring hold FOR SHARE on the same row, so while
end() or cancel() runs no event is accepted and no aggregate moves.

end() is the only operation that retries: draining pending scores and
settlement are re-run from scratch after a rollback, up to
SETTLEMENT_MAX_ATTEMPTS times. A battle that still cannot settle stays LIVE
and is picked up again by the scheduler.
"""

import logging
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sb_battle.application.schemas import (
    BattleListResponse,
    BattleOutcomeResponse,
    BattleResponse,
    CancelBattleRequest,
    CreateBattleRequest,
    JoinBattleRequest,
    SettlementResponse,
)
from src.sb_battle.domain.models import (
    CHALLENGER_TEAM_NAME,
    CREATOR_TEAM_NAME,
    Battle,
    SongSnapshot,
    Team,
)
from src.sb_battle.domain.repository import LOCK_UPDATE, BattleRepositoryProtocol
from src.sb_battle.domain.rules import validate_battle_spec
from src.sb_battle.domain.state import check_transition
from src.sb_battle.infrastructure.persistence import BattleRepository
from src.sb_common.datetime_utils import ensure_utc, utc_now
from src.sb_common.enums import BattleStatus, LedgerReason, TeamSide
from src.sb_common.errors import (
    AppError,
    BattleNotFoundError,
    ChallengeSlotTakenError,
    ForbiddenError,
    IllegalTransitionError,
    SelfChallengeError,
    SettlementFailureError,
)
from src.sb_common.id_generator import generate_id
from src.sb_gateway.auth.dependencies import Principal
from src.sb_ledger.domain.repository import LedgerRepositoryProtocol
from src.sb_ledger.infrastructure.persistence import LedgerRepository
from src.sb_scoring.application.pipeline import get_scoring_pipeline
from src.sb_settlement.application.service import SettlementService
from src.sb_settlement.domain.models import Settlement

logger = logging.getLogger(__name__)


class PendingScoresProtocol(Protocol):
    async def apply_pending(self, db: AsyncSession, battle_id: str) -> int: ...


def _check_actor(battle: Battle, actor: Principal | None, action: str) -> None:
    """Creator or operator only. actor=None is the scheduler."""
    if actor is None or actor.is_operator or actor.user_id == battle.creator_id:
        return
    raise ForbiddenError(f"Only the creator or an operator can {action} this battle")


class BattleLifecycleService:
    def __init__(
        self,
        battle_repo: BattleRepositoryProtocol | None = None,
        ledger_repo: LedgerRepositoryProtocol | None = None,
        settlement: SettlementService | None = None,
        scoring: PendingScoresProtocol | None = None,
        max_settlement_attempts: int | None = None,
    ) -> None:
        self._battles: BattleRepositoryProtocol = battle_repo or BattleRepository()
        self._ledger: LedgerRepositoryProtocol = ledger_repo or LedgerRepository()
        self._settlement = settlement or SettlementService(ledger_repo=self._ledger)
        self._scoring = scoring
        self._max_attempts = max_settlement_attempts or settings.SETTLEMENT_MAX_ATTEMPTS

    @property
    def scoring(self) -> PendingScoresProtocol:
        return self._scoring or get_scoring_pipeline()

    # ------------------------------------------------------------------
    # create / join
    # ------------------------------------------------------------------

    async def create(
        self, db: AsyncSession, creator_id: str, req: CreateBattleRequest
    ) -> BattleResponse:
        songs = [
            SongSnapshot(
                song_id=s.song_id,
                title=s.title,
                artist_name=s.artist_name,
                duration_seconds=s.duration_seconds,
                position=i,
            )
            for i, s in enumerate(req.songs)
        ]
        validate_battle_spec(req.name, songs, req.entry_fee, req.duration_minutes)

        battle = Battle(
            id=generate_id("bt_"),
            name=req.name.strip(),
            creator_id=creator_id,
            duration_minutes=req.duration_minutes,
            entry_fee=req.entry_fee,
            status=BattleStatus.SCHEDULED.value,
            team_a=Team(
                side=TeamSide.A.value,
                name=req.team_name or CREATOR_TEAM_NAME,
                artist_id=creator_id,
                funded=True,
            ),
            team_b=Team(side=TeamSide.B.value, name=CHALLENGER_TEAM_NAME),
            songs=songs,
            total_pot=req.entry_fee * 2,
            scheduled_at=ensure_utc(req.scheduled_at) if req.scheduled_at else None,
            creator_photo_url=req.creator_photo_url,
        )
        try:
            created = await self._battles.insert(db, battle)
            if battle.entry_fee > 0:
                await self._ledger.append(
                    db,
                    creator_id,
                    -battle.entry_fee,
                    LedgerReason.ENTRY_FEE,
                    battle_id=battle.id,
                    description="Battle entry fee (creator)",
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Battle created: battle=%s creator=%s fee=%d songs=%d",
            created.id,
            creator_id,
            created.entry_fee,
            len(created.songs),
        )
        return BattleResponse.from_domain(created)

    async def join(
        self,
        db: AsyncSession,
        battle_id: str,
        artist_id: str,
        req: JoinBattleRequest,
    ) -> BattleResponse:
        try:
            battle = await self._lock(db, battle_id)
            if battle.status != BattleStatus.SCHEDULED:
                raise IllegalTransitionError(battle_id, battle.status, "accept a challenger")
            if artist_id == battle.creator_id:
                raise SelfChallengeError()
            if battle.team_b.artist_id is not None:
                raise ChallengeSlotTakenError(battle_id)
            team_name = req.team_name or CHALLENGER_TEAM_NAME
            if not await self._battles.assign_challenger(db, battle_id, artist_id, team_name):
                raise ChallengeSlotTakenError(battle_id)
            if battle.entry_fee > 0:
                await self._ledger.append(
                    db,
                    artist_id,
                    -battle.entry_fee,
                    LedgerReason.ENTRY_FEE,
                    battle_id=battle_id,
                    description="Battle entry fee (challenger)",
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        battle.team_b.artist_id = artist_id
        battle.team_b.name = team_name
        battle.team_b.funded = True
        logger.info("Challenger joined: battle=%s artist=%s", battle_id, artist_id)
        return BattleResponse.from_domain(battle)

    # ------------------------------------------------------------------
    # start / end / cancel
    # ------------------------------------------------------------------

    async def start(
        self, db: AsyncSession, battle_id: str, actor: Principal | None = None
    ) -> BattleResponse:
        now = utc_now()
        try:
            battle = await self._lock(db, battle_id)
            _check_actor(battle, actor, "start")
            check_transition(battle_id, battle.status, BattleStatus.LIVE, "start")
            if not battle.both_sides_funded:
                raise IllegalTransitionError(
                    battle_id, battle.status, "start before both sides are funded"
                )
            if not await self._battles.update_status(
                db,
                battle_id,
                BattleStatus.SCHEDULED.value,
                BattleStatus.LIVE.value,
                started_at=now,
            ):
                raise IllegalTransitionError(battle_id, battle.status, "start")
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        battle.status = BattleStatus.LIVE.value
        battle.started_at = now
        logger.info(
            "Battle started: battle=%s ends_at=%s", battle_id, battle.deadline.isoformat()
        )
        return BattleResponse.from_domain(battle)

    async def end(self, db: AsyncSession, battle_id: str) -> BattleOutcomeResponse:
        last_error: Exception | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                battle, settlement = await self._end_once(db, battle_id)
                await db.commit()
            except AppError:
                # Lifecycle violations are final, never retried.
                await db.rollback()
                raise
            except Exception as exc:
                await db.rollback()
                last_error = exc
                logger.warning(
                    "Battle end attempt %d/%d failed: battle=%s",
                    attempt,
                    self._max_attempts,
                    battle_id,
                    exc_info=True,
                )
                continue
            logger.info(
                "Battle completed: battle=%s winner=%s attempt=%d",
                battle_id,
                settlement.winner_side,
                attempt,
            )
            return BattleOutcomeResponse(
                battle=BattleResponse.from_domain(battle),
                settlement=SettlementResponse.from_domain(settlement),
            )

        logger.error("Battle settlement gave up, stays LIVE: battle=%s", battle_id)
        raise SettlementFailureError(battle_id, str(last_error)) from last_error

    async def _end_once(
        self, db: AsyncSession, battle_id: str
    ) -> tuple[Battle, Settlement]:
        battle = await self._lock(db, battle_id)
        check_transition(battle_id, battle.status, BattleStatus.COMPLETED, "end")

        drained = await self.scoring.apply_pending(db, battle_id)
        if drained:
            # Re-read the frozen aggregates written in this transaction.
            battle = await self._lock(db, battle_id)

        settlement = await self._settlement.settle(db, battle)
        now = utc_now()
        if not await self._battles.update_status(
            db,
            battle_id,
            BattleStatus.LIVE.value,
            BattleStatus.COMPLETED.value,
            ended_at=now,
        ):
            raise IllegalTransitionError(battle_id, battle.status, "end")
        battle.status = BattleStatus.COMPLETED.value
        battle.ended_at = now
        return battle, settlement

    async def cancel(
        self,
        db: AsyncSession,
        battle_id: str,
        req: CancelBattleRequest,
        actor: Principal | None = None,
    ) -> BattleOutcomeResponse:
        now = utc_now()
        try:
            battle = await self._lock(db, battle_id)
            _check_actor(battle, actor, "cancel")
            check_transition(battle_id, battle.status, BattleStatus.CANCELLED, "cancel")
            settlement = await self._settlement.refund(db, battle)
            if not await self._battles.update_status(
                db,
                battle_id,
                battle.status,
                BattleStatus.CANCELLED.value,
                ended_at=now,
                cancel_reason=req.reason,
            ):
                raise IllegalTransitionError(battle_id, battle.status, "cancel")
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Battle cancelled: battle=%s from=%s reason=%s",
            battle_id,
            battle.status,
            req.reason,
        )
        battle.status = BattleStatus.CANCELLED.value
        battle.ended_at = now
        battle.cancel_reason = req.reason
        return BattleOutcomeResponse(
            battle=BattleResponse.from_domain(battle),
            settlement=SettlementResponse.from_domain(settlement),
        )

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    async def get(self, db: AsyncSession, battle_id: str) -> BattleResponse:
        battle = await self._battles.get(db, battle_id)
        if battle is None:
            raise BattleNotFoundError(battle_id)
        return BattleResponse.from_domain(battle)

    async def list_battles(
        self, db: AsyncSession, status: str | None, limit: int
    ) -> BattleListResponse:
        battles = await self._battles.list_battles(db, status, limit)
        return BattleListResponse(items=[BattleResponse.from_domain(b) for b in battles])

    async def _lock(self, db: AsyncSession, battle_id: str) -> Battle:
        battle = await self._battles.get(db, battle_id, lock=LOCK_UPDATE)
        if battle is None:
            raise BattleNotFoundError(battle_id)
        return battle


_lifecycle_service: BattleLifecycleService | None = None


def get_lifecycle_service() -> BattleLifecycleService:
    global _lifecycle_service  # noqa: PLW0603
    if _lifecycle_service is None:
        _lifecycle_service = BattleLifecycleService()
    return _lifecycle_service
