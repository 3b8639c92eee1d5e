"""ScoreRepository — concrete implementation of ScoreRepositoryProtocol.

Team counters are only ever changed by ``score = score + :points`` on the
team's own row, so concurrent writers never lose updates and the two teams
of a battle never contend for the same row lock.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_scoring.domain.models import ScoringUnit, TeamTotals

_LOCK_BATTLE_SQL = text("SELECT status FROM battles WHERE id = :battle_id FOR SHARE")

_MARK_APPLIED_SQL = text("""
    INSERT INTO scored_stream_events (event_id, battle_id, points)
    VALUES (:event_id, :battle_id, :points)
    ON CONFLICT (event_id) DO NOTHING
    RETURNING event_id
""")

_MARK_SUPPORTER_SQL = text("""
    INSERT INTO battle_supporters (battle_id, listener_id, side)
    VALUES (:battle_id, :listener_id, :side)
    ON CONFLICT (battle_id, listener_id) DO NOTHING
    RETURNING listener_id
""")

_INCREMENT_TEAM_SQL = text("""
    UPDATE battle_teams
    SET score = score + :points,
        supporters = supporters + :supporters
    WHERE battle_id = :battle_id AND side = :side
    RETURNING battle_id, side, score, supporters
""")

_LIST_UNAPPLIED_SQL = text("""
    SELECT e.id, e.battle_id, e.listener_id, e.team_side
    FROM stream_events e
    JOIN battles b ON b.id = e.battle_id
    WHERE e.scored
      AND b.status = 'LIVE'
      AND (CAST(:battle_id AS TEXT) IS NULL OR e.battle_id = CAST(:battle_id AS TEXT))
      AND NOT EXISTS (
          SELECT 1 FROM scored_stream_events s WHERE s.event_id = e.id
      )
    ORDER BY e.received_at, e.id
    LIMIT :limit
""")


class ScoreRepository:
    async def lock_battle_shared(
        self, db: AsyncSession, battle_id: str
    ) -> str | None:
        result = await db.execute(_LOCK_BATTLE_SQL, {"battle_id": battle_id})
        return result.scalar_one_or_none()

    async def mark_applied(
        self, db: AsyncSession, event_id: str, battle_id: str, points: int
    ) -> bool:
        result = await db.execute(
            _MARK_APPLIED_SQL,
            {"event_id": event_id, "battle_id": battle_id, "points": points},
        )
        return result.fetchone() is not None

    async def mark_supporter(
        self, db: AsyncSession, battle_id: str, listener_id: str, side: str
    ) -> bool:
        result = await db.execute(
            _MARK_SUPPORTER_SQL,
            {"battle_id": battle_id, "listener_id": listener_id, "side": side},
        )
        return result.fetchone() is not None

    async def increment_team(
        self,
        db: AsyncSession,
        battle_id: str,
        side: str,
        points: int,
        supporters: int,
    ) -> TeamTotals | None:
        result = await db.execute(
            _INCREMENT_TEAM_SQL,
            {
                "battle_id": battle_id,
                "side": side,
                "points": points,
                "supporters": supporters,
            },
        )
        row = result.fetchone()
        if row is None:
            return None
        return TeamTotals(
            battle_id=row.battle_id,
            side=row.side,
            score=row.score,
            supporters=row.supporters,
        )

    async def list_unapplied(
        self, db: AsyncSession, battle_id: str | None, limit: int
    ) -> list[ScoringUnit]:
        result = await db.execute(
            _LIST_UNAPPLIED_SQL, {"battle_id": battle_id, "limit": limit}
        )
        return [
            ScoringUnit(
                event_id=row.id,
                battle_id=row.battle_id,
                listener_id=row.listener_id,
                team_side=row.team_side,
            )
            for row in result.fetchall()
        ]
