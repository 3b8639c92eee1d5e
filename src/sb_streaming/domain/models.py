"""Domain models for sb_streaming — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.sb_battle.domain.models import SongSnapshot


@dataclass
class StreamEvent:
    id: str
    battle_id: str
    listener_id: str
    song_id: str
    team_side: str
    client_nonce: str
    received_at: datetime            # server clock, drives dedup and deadline
    dedup_key: str
    scored: bool = True              # False = duplicate kept for audit only
    played_at: datetime | None = None  # client clock, informational


def replay_window_seconds(song: SongSnapshot, min_window_seconds: int) -> int:
    """A replay of the same song counts again only after the song could have
    finished playing, and never sooner than the configured floor."""
    return max(song.duration_seconds, min_window_seconds)


def build_dedup_key(
    listener_id: str,
    battle_id: str,
    song_id: str,
    window_start: datetime,
) -> str:
    """Identifies the replay window a play falls into. A window opens at the
    listener's last scored play of the song, so every play inside it shares
    the key of that scoring play."""
    return f"{listener_id}:{battle_id}:{song_id}:{int(window_start.timestamp())}"
