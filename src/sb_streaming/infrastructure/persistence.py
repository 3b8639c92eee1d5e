"""StreamEventRepository — concrete implementation of StreamEventRepositoryProtocol.

Deduplication is enforced by PostgreSQL, not by a read-then-write check:
  - stream_replay_windows holds one row per (listener, battle, song) with the
    time of the last scored play. A new play claims the row with a guarded
    upsert that only succeeds once the window has elapsed; concurrent
    claimers queue on the row lock and all but the first see 0 rows.
  - unique (listener_id, battle_id, client_nonce) for client retries
  - partial unique index on dedup_key WHERE scored backs up the window claim
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_streaming.domain.models import StreamEvent

_EVENT_COLUMNS = """
    id, battle_id, listener_id, song_id, team_side, client_nonce,
    received_at, played_at, dedup_key, scored
"""

_INSERT_EVENT_SQL = text("""
    INSERT INTO stream_events
        (id, battle_id, listener_id, song_id, team_side, client_nonce,
         received_at, played_at, dedup_key, scored)
    VALUES
        (:id, :battle_id, :listener_id, :song_id, :team_side, :client_nonce,
         :received_at, :played_at, :dedup_key, :scored)
    ON CONFLICT DO NOTHING
    RETURNING id
""")

_GET_BY_NONCE_SQL = text(f"""
    SELECT {_EVENT_COLUMNS}
    FROM stream_events
    WHERE listener_id = :listener_id
      AND battle_id = :battle_id
      AND client_nonce = :client_nonce
""")

_CLAIM_WINDOW_SQL = text("""
    INSERT INTO stream_replay_windows (listener_id, battle_id, song_id, last_scored_at)
    VALUES (:listener_id, :battle_id, :song_id, :received_at)
    ON CONFLICT (listener_id, battle_id, song_id) DO UPDATE
    SET last_scored_at = EXCLUDED.last_scored_at
    WHERE stream_replay_windows.last_scored_at
          <= EXCLUDED.last_scored_at - CAST(:window_seconds AS INTEGER) * INTERVAL '1 second'
    RETURNING last_scored_at
""")

_GET_WINDOW_SQL = text("""
    SELECT last_scored_at
    FROM stream_replay_windows
    WHERE listener_id = :listener_id AND battle_id = :battle_id AND song_id = :song_id
""")


def _row_to_event(row: object) -> StreamEvent:
    return StreamEvent(
        id=row.id,  # type: ignore[attr-defined]
        battle_id=row.battle_id,  # type: ignore[attr-defined]
        listener_id=row.listener_id,  # type: ignore[attr-defined]
        song_id=row.song_id,  # type: ignore[attr-defined]
        team_side=row.team_side,  # type: ignore[attr-defined]
        client_nonce=row.client_nonce,  # type: ignore[attr-defined]
        received_at=row.received_at,  # type: ignore[attr-defined]
        played_at=row.played_at,  # type: ignore[attr-defined]
        dedup_key=row.dedup_key,  # type: ignore[attr-defined]
        scored=row.scored,  # type: ignore[attr-defined]
    )


class StreamEventRepository:
    async def get_by_nonce(
        self, db: AsyncSession, listener_id: str, battle_id: str, client_nonce: str
    ) -> StreamEvent | None:
        result = await db.execute(
            _GET_BY_NONCE_SQL,
            {
                "listener_id": listener_id,
                "battle_id": battle_id,
                "client_nonce": client_nonce,
            },
        )
        row = result.fetchone()
        return _row_to_event(row) if row else None

    async def claim_replay_window(
        self,
        db: AsyncSession,
        listener_id: str,
        battle_id: str,
        song_id: str,
        received_at: datetime,
        window_seconds: int,
    ) -> tuple[bool, datetime]:
        key = {"listener_id": listener_id, "battle_id": battle_id, "song_id": song_id}
        result = await db.execute(
            _CLAIM_WINDOW_SQL,
            {**key, "received_at": received_at, "window_seconds": window_seconds},
        )
        if result.fetchone() is not None:
            return True, received_at

        # Row is locked by the upsert above, so this reads the winning claim.
        row = (await db.execute(_GET_WINDOW_SQL, key)).fetchone()
        return False, row.last_scored_at if row else received_at

    async def insert_scored(self, db: AsyncSession, event: StreamEvent) -> bool:
        return await self._insert(db, event, scored=True)

    async def insert_audit(self, db: AsyncSession, event: StreamEvent) -> bool:
        return await self._insert(db, event, scored=False)

    async def _insert(self, db: AsyncSession, event: StreamEvent, scored: bool) -> bool:
        result = await db.execute(
            _INSERT_EVENT_SQL,
            {
                "id": event.id,
                "battle_id": event.battle_id,
                "listener_id": event.listener_id,
                "song_id": event.song_id,
                "team_side": event.team_side,
                "client_nonce": event.client_nonce,
                "received_at": event.received_at,
                "played_at": event.played_at,
                "dedup_key": event.dedup_key,
                "scored": scored,
            },
        )
        return result.fetchone() is not None
