"""Creation-time validation of a battle spec."""

from src.sb_battle.domain.models import MAX_SONGS_PER_BATTLE, SongSnapshot
from src.sb_common.errors import InvalidSpecError


def validate_battle_spec(
    name: str,
    songs: list[SongSnapshot],
    entry_fee: int,
    duration_minutes: int,
) -> None:
    """Raise InvalidSpecError on the first violated constraint."""
    if not name or not name.strip():
        raise InvalidSpecError("name must not be empty")
    if not (1 <= len(songs) <= MAX_SONGS_PER_BATTLE):
        raise InvalidSpecError(
            f"battle needs 1 to {MAX_SONGS_PER_BATTLE} songs, got {len(songs)}"
        )
    song_ids = [s.song_id for s in songs]
    if len(set(song_ids)) != len(song_ids):
        raise InvalidSpecError("song ids must be unique")
    if any(s.duration_seconds <= 0 for s in songs):
        raise InvalidSpecError("song durations must be positive")
    if entry_fee < 0:
        raise InvalidSpecError(f"entry_fee must be >= 0, got {entry_fee}")
    if duration_minutes <= 0:
        raise InvalidSpecError(f"duration must be > 0 minutes, got {duration_minutes}")
