"""Pydantic schemas for the bot earning program."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.sb_bot.domain.models import BotTask
from src.sb_common.coins import coins_to_display


class AssignTaskRequest(BaseModel):
    listener_id: str = Field(..., min_length=1)
    song_id: str = Field(..., min_length=1)
    coins_awarded: int = Field(..., gt=0, description="Coins credited on completion")


class BotTaskResponse(BaseModel):
    id: str
    listener_id: str
    song_id: str
    coins_awarded: int
    coins_display: str
    completed: bool
    completed_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_domain(cls, task: BotTask) -> "BotTaskResponse":
        return cls(
            id=task.id,
            listener_id=task.listener_id,
            song_id=task.song_id,
            coins_awarded=task.coins_awarded,
            coins_display=coins_to_display(task.coins_awarded),
            completed=task.completed,
            completed_at=task.completed_at,
            created_at=task.created_at,
        )


class CompleteTaskResponse(BaseModel):
    task: BotTaskResponse
    credited: int          # 0 on an idempotent repeat
    balance_after: int | None = None


class BotTaskListResponse(BaseModel):
    items: list[BotTaskResponse]
