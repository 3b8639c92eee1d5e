"""StreamIngestService — accepts listener plays during a live battle.

Each submission runs in one short transaction:
  1. read the battle under a shared row lock (end/cancel hold FOR UPDATE,
     so no event slips in after the aggregates are frozen)
  2. client-nonce replay returns the stored event unchanged
  3. validate liveness, deadline, team and song
  4. claim the listener's replay window for the song: the first play after
     the window has elapsed scores, any other is stored as an audit row
  5. commit, then hand the scoring unit to the pipeline without blocking
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sb_battle.domain.models import Battle
from src.sb_battle.domain.repository import LOCK_SHARE, BattleRepositoryProtocol
from src.sb_battle.infrastructure.persistence import BattleRepository
from src.sb_common.datetime_utils import ensure_utc, utc_now
from src.sb_common.enums import StreamOutcome, TeamSide
from src.sb_common.errors import (
    BattleNotFoundError,
    BattleNotLiveError,
    InternalError,
    UnknownSongError,
    UnknownTeamError,
)
from src.sb_common.id_generator import generate_id
from src.sb_scoring.application.pipeline import get_scoring_pipeline
from src.sb_scoring.domain.models import ScoringUnit
from src.sb_streaming.application.schemas import (
    StreamSubmitRequest,
    StreamSubmitResponse,
)
from src.sb_streaming.domain.models import (
    StreamEvent,
    build_dedup_key,
    replay_window_seconds,
)
from src.sb_streaming.domain.repository import (
    ScoringPublisherProtocol,
    StreamEventRepositoryProtocol,
)
from src.sb_streaming.infrastructure.persistence import StreamEventRepository

logger = logging.getLogger(__name__)


def _to_response(event: StreamEvent, replayed: bool = False) -> StreamSubmitResponse:
    return StreamSubmitResponse(
        event_id=event.id,
        battle_id=event.battle_id,
        song_id=event.song_id,
        team_side=event.team_side,
        outcome=(StreamOutcome.SCORED if event.scored else StreamOutcome.DUPLICATE).value,
        replayed=replayed,
        received_at=event.received_at,
    )


def _to_unit(event: StreamEvent) -> ScoringUnit:
    return ScoringUnit(
        event_id=event.id,
        battle_id=event.battle_id,
        listener_id=event.listener_id,
        team_side=event.team_side,
    )


def _check_live(battle: Battle, now: datetime) -> None:
    if not battle.is_live or battle.is_expired(now):
        raise BattleNotLiveError(battle.id)


class StreamIngestService:
    def __init__(
        self,
        battle_repo: BattleRepositoryProtocol | None = None,
        event_repo: StreamEventRepositoryProtocol | None = None,
        publisher: ScoringPublisherProtocol | None = None,
        min_window_seconds: int | None = None,
    ) -> None:
        self._battles: BattleRepositoryProtocol = battle_repo or BattleRepository()
        self._events: StreamEventRepositoryProtocol = event_repo or StreamEventRepository()
        self._publisher = publisher
        self._min_window = (
            min_window_seconds if min_window_seconds is not None
            else settings.STREAM_MIN_REPLAY_WINDOW_SECONDS
        )

    @property
    def publisher(self) -> ScoringPublisherProtocol:
        return self._publisher or get_scoring_pipeline()

    async def submit(
        self,
        db: AsyncSession,
        listener_id: str,
        battle_id: str,
        req: StreamSubmitRequest,
    ) -> StreamSubmitResponse:
        try:
            event, replayed = await self._record(db, listener_id, battle_id, req)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        if event.scored:
            # Replays re-publish too: apply is idempotent per event id and the
            # first publish may have been dropped by a full queue.
            self.publisher.publish(_to_unit(event))
        return _to_response(event, replayed)

    async def _record(
        self,
        db: AsyncSession,
        listener_id: str,
        battle_id: str,
        req: StreamSubmitRequest,
    ) -> tuple[StreamEvent, bool]:
        now = utc_now()
        battle = await self._battles.get(db, battle_id, lock=LOCK_SHARE)
        if battle is None:
            raise BattleNotFoundError(battle_id)

        # A retry of an accepted play gets the stored event, even past the deadline.
        existing = await self._events.get_by_nonce(
            db, listener_id, battle_id, req.client_nonce
        )
        if existing is not None:
            logger.info(
                "Stream idempotency hit: listener=%s battle=%s nonce=%s",
                listener_id,
                battle_id,
                req.client_nonce,
            )
            return existing, True

        _check_live(battle, now)
        try:
            side = TeamSide(req.team_side)
        except ValueError:
            raise UnknownTeamError(req.team_side) from None
        song = battle.song(req.song_id)
        if song is None:
            raise UnknownSongError(req.song_id)

        window = replay_window_seconds(song, self._min_window)
        scored, window_start = await self._events.claim_replay_window(
            db, listener_id, battle_id, song.song_id, now, window
        )
        event = StreamEvent(
            id=generate_id("se_"),
            battle_id=battle_id,
            listener_id=listener_id,
            song_id=song.song_id,
            team_side=side.value,
            client_nonce=req.client_nonce,
            received_at=now,
            dedup_key=build_dedup_key(listener_id, battle_id, song.song_id, window_start),
            scored=scored,
            played_at=ensure_utc(req.played_at) if req.played_at else None,
        )
        insert = self._events.insert_scored if scored else self._events.insert_audit
        if await insert(db, event):
            if not scored:
                logger.info(
                    "Duplicate stream recorded: listener=%s battle=%s song=%s window=%ds",
                    listener_id,
                    battle_id,
                    song.song_id,
                    window,
                )
            return event, False

        # Lost a race against a concurrent retry carrying the same nonce.
        # Roll back this attempt's window claim, then return the stored event.
        await db.rollback()
        existing = await self._events.get_by_nonce(
            db, listener_id, battle_id, req.client_nonce
        )
        if existing is None:
            raise InternalError(f"Stream insert conflicted without a stored event: {battle_id}")
        return existing, True


_ingest_service: StreamIngestService | None = None


def get_ingest_service() -> StreamIngestService:
    global _ingest_service  # noqa: PLW0603
    if _ingest_service is None:
        _ingest_service = StreamIngestService()
    return _ingest_service
