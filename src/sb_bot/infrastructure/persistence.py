"""BotTaskRepository — bot_tasks table access (raw SQL).

Completion is ``UPDATE ... WHERE completed = FALSE RETURNING``: of two
concurrent completions only one gets a row back, and only that one credits
the listener.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_bot.domain.models import BotTask

_COLUMNS = "id, listener_id, song_id, coins_awarded, completed, completed_at, created_at"

_INSERT_SQL = text(f"""
    INSERT INTO bot_tasks (id, listener_id, song_id, coins_awarded, completed)
    VALUES (:id, :listener_id, :song_id, :coins_awarded, FALSE)
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"SELECT {_COLUMNS} FROM bot_tasks WHERE id = :task_id")

_MARK_COMPLETED_SQL = text(f"""
    UPDATE bot_tasks
    SET completed = TRUE, completed_at = NOW()
    WHERE id = :task_id AND listener_id = :listener_id AND completed = FALSE
    RETURNING {_COLUMNS}
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM bot_tasks
    WHERE listener_id = :listener_id
      AND (CAST(:completed AS BOOLEAN) IS NULL OR completed = CAST(:completed AS BOOLEAN))
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")


def _row_to_task(row: object) -> BotTask:
    return BotTask(
        id=row.id,  # type: ignore[attr-defined]
        listener_id=row.listener_id,  # type: ignore[attr-defined]
        song_id=row.song_id,  # type: ignore[attr-defined]
        coins_awarded=row.coins_awarded,  # type: ignore[attr-defined]
        completed=row.completed,  # type: ignore[attr-defined]
        completed_at=row.completed_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class BotTaskRepository:
    async def insert(self, db: AsyncSession, task: BotTask) -> BotTask:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": task.id,
                "listener_id": task.listener_id,
                "song_id": task.song_id,
                "coins_awarded": task.coins_awarded,
            },
        )
        return _row_to_task(result.fetchone())

    async def get(self, db: AsyncSession, task_id: str) -> BotTask | None:
        row = (await db.execute(_GET_SQL, {"task_id": task_id})).fetchone()
        return _row_to_task(row) if row else None

    async def mark_completed(
        self, db: AsyncSession, task_id: str, listener_id: str
    ) -> BotTask | None:
        result = await db.execute(
            _MARK_COMPLETED_SQL, {"task_id": task_id, "listener_id": listener_id}
        )
        row = result.fetchone()
        return _row_to_task(row) if row else None

    async def list_for_listener(
        self, db: AsyncSession, listener_id: str, completed: bool | None, limit: int
    ) -> list[BotTask]:
        result = await db.execute(
            _LIST_SQL,
            {"listener_id": listener_id, "completed": completed, "limit": limit},
        )
        return [_row_to_task(row) for row in result.fetchall()]
