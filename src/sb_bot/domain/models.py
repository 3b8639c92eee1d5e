"""Domain models for sb_bot — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class BotTask:
    """A song a listener is paid to stream. Completion credits coins once."""

    id: str
    listener_id: str
    song_id: str
    coins_awarded: int
    completed: bool = False
    completed_at: datetime | None = None
    created_at: datetime | None = None
