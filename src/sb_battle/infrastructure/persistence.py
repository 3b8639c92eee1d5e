"""BattleRepository — concrete implementation of BattleRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Status changes are compare-and-set (``WHERE status = :from_status``) so a
transition can never be applied twice or out of order.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_battle.domain.models import Battle, SongSnapshot, Team
from src.sb_common.enums import TeamSide

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_BATTLE_COLUMNS = """
    id, name, creator_id, duration_minutes, entry_fee, status,
    total_pot, stream_revenue, scheduled_at, started_at, ended_at,
    cancel_reason, creator_photo_url, created_at, updated_at
"""

_INSERT_BATTLE_SQL = text(f"""
    INSERT INTO battles
        (id, name, creator_id, duration_minutes, entry_fee, status,
         total_pot, stream_revenue, scheduled_at, creator_photo_url)
    VALUES
        (:id, :name, :creator_id, :duration_minutes, :entry_fee, :status,
         :total_pot, 0, :scheduled_at, :creator_photo_url)
    RETURNING {_BATTLE_COLUMNS}
""")

_INSERT_TEAM_SQL = text("""
    INSERT INTO battle_teams (battle_id, side, name, artist_id, score, supporters, funded)
    VALUES (:battle_id, :side, :name, :artist_id, 0, 0, :funded)
""")

_INSERT_SONG_SQL = text("""
    INSERT INTO battle_songs
        (battle_id, song_id, title, artist_name, duration_seconds, position)
    VALUES
        (:battle_id, :song_id, :title, :artist_name, :duration_seconds, :position)
""")

_GET_BATTLE_SQL = text(f"SELECT {_BATTLE_COLUMNS} FROM battles WHERE id = :battle_id")

_GET_BATTLE_FOR_UPDATE_SQL = text(
    f"SELECT {_BATTLE_COLUMNS} FROM battles WHERE id = :battle_id FOR UPDATE"
)

# Shared lock: many ingest transactions at once, but none while end/cancel
# holds FOR UPDATE on the row.
_GET_BATTLE_FOR_SHARE_SQL = text(
    f"SELECT {_BATTLE_COLUMNS} FROM battles WHERE id = :battle_id FOR SHARE"
)

_GET_SQL_BY_LOCK = {
    None: _GET_BATTLE_SQL,
    "update": _GET_BATTLE_FOR_UPDATE_SQL,
    "share": _GET_BATTLE_FOR_SHARE_SQL,
}

_LIST_BATTLES_SQL = text(f"""
    SELECT {_BATTLE_COLUMNS}
    FROM battles
    WHERE (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    ORDER BY COALESCE(started_at, scheduled_at, created_at) DESC, id DESC
    LIMIT :limit
""")

_GET_TEAMS_SQL = text("""
    SELECT battle_id, side, name, artist_id, score, supporters, funded
    FROM battle_teams
    WHERE battle_id = ANY(:battle_ids)
""")

_GET_SONGS_SQL = text("""
    SELECT battle_id, song_id, title, artist_name, duration_seconds, position
    FROM battle_songs
    WHERE battle_id = ANY(:battle_ids)
    ORDER BY battle_id, position
""")

_ASSIGN_CHALLENGER_SQL = text("""
    UPDATE battle_teams
    SET artist_id = :artist_id,
        name = :team_name,
        funded = TRUE
    WHERE battle_id = :battle_id AND side = 'B' AND artist_id IS NULL
    RETURNING battle_id
""")

_UPDATE_STATUS_SQL = text("""
    UPDATE battles
    SET status = :to_status,
        started_at = COALESCE(CAST(:started_at AS TIMESTAMPTZ), started_at),
        ended_at = COALESCE(CAST(:ended_at AS TIMESTAMPTZ), ended_at),
        cancel_reason = COALESCE(CAST(:cancel_reason AS TEXT), cancel_reason),
        updated_at = NOW()
    WHERE id = :battle_id AND status = :from_status
    RETURNING id
""")

_DUE_TO_START_SQL = text("""
    SELECT b.id
    FROM battles b
    WHERE b.status = 'SCHEDULED'
      AND b.scheduled_at IS NOT NULL
      AND b.scheduled_at <= :now
      AND (
          SELECT COUNT(*) FROM battle_teams t
          WHERE t.battle_id = b.id AND t.funded AND t.artist_id IS NOT NULL
      ) = 2
    ORDER BY b.scheduled_at
""")

_DUE_TO_END_SQL = text("""
    SELECT id
    FROM battles
    WHERE status = 'LIVE'
      AND started_at + make_interval(mins => duration_minutes) <= :now
    ORDER BY started_at
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_team(row: object) -> Team:
    return Team(
        side=row.side,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        artist_id=row.artist_id,  # type: ignore[attr-defined]
        score=row.score,  # type: ignore[attr-defined]
        supporters=row.supporters,  # type: ignore[attr-defined]
        funded=row.funded,  # type: ignore[attr-defined]
    )


def _row_to_song(row: object) -> SongSnapshot:
    return SongSnapshot(
        song_id=row.song_id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        artist_name=row.artist_name,  # type: ignore[attr-defined]
        duration_seconds=row.duration_seconds,  # type: ignore[attr-defined]
        position=row.position,  # type: ignore[attr-defined]
    )


def _row_to_battle(
    row: object, teams: dict[str, Team], songs: list[SongSnapshot]
) -> Battle:
    return Battle(
        id=row.id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        creator_id=row.creator_id,  # type: ignore[attr-defined]
        duration_minutes=row.duration_minutes,  # type: ignore[attr-defined]
        entry_fee=row.entry_fee,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        team_a=teams[TeamSide.A.value],
        team_b=teams[TeamSide.B.value],
        songs=songs,
        total_pot=row.total_pot,  # type: ignore[attr-defined]
        stream_revenue=row.stream_revenue,  # type: ignore[attr-defined]
        scheduled_at=row.scheduled_at,  # type: ignore[attr-defined]
        started_at=row.started_at,  # type: ignore[attr-defined]
        ended_at=row.ended_at,  # type: ignore[attr-defined]
        cancel_reason=row.cancel_reason,  # type: ignore[attr-defined]
        creator_photo_url=row.creator_photo_url,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BattleRepository:
    """Concrete repository — battles, their two teams and song snapshot."""

    async def insert(self, db: AsyncSession, battle: Battle) -> Battle:
        result = await db.execute(
            _INSERT_BATTLE_SQL,
            {
                "id": battle.id,
                "name": battle.name,
                "creator_id": battle.creator_id,
                "duration_minutes": battle.duration_minutes,
                "entry_fee": battle.entry_fee,
                "status": battle.status,
                "total_pot": battle.total_pot,
                "scheduled_at": battle.scheduled_at,
                "creator_photo_url": battle.creator_photo_url,
            },
        )
        row = result.fetchone()
        for team in (battle.team_a, battle.team_b):
            await db.execute(
                _INSERT_TEAM_SQL,
                {
                    "battle_id": battle.id,
                    "side": team.side,
                    "name": team.name,
                    "artist_id": team.artist_id,
                    "funded": team.funded,
                },
            )
        for song in battle.songs:
            await db.execute(
                _INSERT_SONG_SQL,
                {
                    "battle_id": battle.id,
                    "song_id": song.song_id,
                    "title": song.title,
                    "artist_name": song.artist_name,
                    "duration_seconds": song.duration_seconds,
                    "position": song.position,
                },
            )
        teams = {battle.team_a.side: battle.team_a, battle.team_b.side: battle.team_b}
        return _row_to_battle(row, teams, list(battle.songs))

    async def get(
        self, db: AsyncSession, battle_id: str, lock: str | None = None
    ) -> Battle | None:
        sql = _GET_SQL_BY_LOCK[lock]
        row = (await db.execute(sql, {"battle_id": battle_id})).fetchone()
        if row is None:
            return None
        battles = await self._hydrate(db, [row])
        return battles[0]

    async def list_battles(
        self, db: AsyncSession, status: str | None, limit: int
    ) -> list[Battle]:
        result = await db.execute(_LIST_BATTLES_SQL, {"status": status, "limit": limit})
        rows = result.fetchall()
        if not rows:
            return []
        return await self._hydrate(db, rows)

    async def assign_challenger(
        self, db: AsyncSession, battle_id: str, artist_id: str, team_name: str
    ) -> bool:
        result = await db.execute(
            _ASSIGN_CHALLENGER_SQL,
            {"battle_id": battle_id, "artist_id": artist_id, "team_name": team_name},
        )
        return result.fetchone() is not None

    async def update_status(
        self,
        db: AsyncSession,
        battle_id: str,
        from_status: str,
        to_status: str,
        started_at: datetime | None = None,
        ended_at: datetime | None = None,
        cancel_reason: str | None = None,
    ) -> bool:
        result = await db.execute(
            _UPDATE_STATUS_SQL,
            {
                "battle_id": battle_id,
                "from_status": from_status,
                "to_status": to_status,
                "started_at": started_at,
                "ended_at": ended_at,
                "cancel_reason": cancel_reason,
            },
        )
        return result.fetchone() is not None

    async def list_due_to_start(self, db: AsyncSession, now: datetime) -> list[str]:
        result = await db.execute(_DUE_TO_START_SQL, {"now": now})
        return [row.id for row in result.fetchall()]

    async def list_due_to_end(self, db: AsyncSession, now: datetime) -> list[str]:
        result = await db.execute(_DUE_TO_END_SQL, {"now": now})
        return [row.id for row in result.fetchall()]

    async def _hydrate(self, db: AsyncSession, rows: list) -> list[Battle]:
        battle_ids = [row.id for row in rows]
        team_rows = (
            await db.execute(_GET_TEAMS_SQL, {"battle_ids": battle_ids})
        ).fetchall()
        song_rows = (
            await db.execute(_GET_SONGS_SQL, {"battle_ids": battle_ids})
        ).fetchall()

        teams: dict[str, dict[str, Team]] = {bid: {} for bid in battle_ids}
        for t in team_rows:
            teams[t.battle_id][t.side] = _row_to_team(t)
        songs: dict[str, list[SongSnapshot]] = {bid: [] for bid in battle_ids}
        for s in song_rows:
            songs[s.battle_id].append(_row_to_song(s))

        return [_row_to_battle(row, teams[row.id], songs[row.id]) for row in rows]
