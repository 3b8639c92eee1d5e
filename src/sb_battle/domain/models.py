"""Domain models for sb_battle — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

from src.sb_common.datetime_utils import battle_deadline
from src.sb_common.enums import BattleStatus, TeamSide

MAX_SONGS_PER_BATTLE = 5
CREATOR_TEAM_NAME = "Creator Team"
CHALLENGER_TEAM_NAME = "Challenger Team"


@dataclass(frozen=True)
class SongSnapshot:
    """Song copied by value at creation; later catalog edits never reach the battle."""

    song_id: str
    title: str
    artist_name: str
    duration_seconds: int
    position: int = 0


@dataclass
class Team:
    side: str                       # TeamSide value
    name: str
    artist_id: str | None = None    # None = open challenge slot
    score: int = 0
    supporters: int = 0
    funded: bool = False            # entry fee collected for this side


@dataclass
class Battle:
    id: str
    name: str
    creator_id: str
    duration_minutes: int
    entry_fee: int                  # coins, paid by each artist
    status: str                     # BattleStatus value
    team_a: Team
    team_b: Team
    songs: list[SongSnapshot] = field(default_factory=list)
    total_pot: int = 0
    stream_revenue: int = 0
    scheduled_at: datetime | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    cancel_reason: str | None = None
    creator_photo_url: str | None = None   # opaque, never inspected
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def team(self, side: str) -> Team:
        if side == TeamSide.A:
            return self.team_a
        if side == TeamSide.B:
            return self.team_b
        raise KeyError(side)

    def song(self, song_id: str) -> SongSnapshot | None:
        for song in self.songs:
            if song.song_id == song_id:
                return song
        return None

    @property
    def deadline(self) -> datetime | None:
        if self.started_at is None:
            return None
        return battle_deadline(self.started_at, self.duration_minutes)

    def is_expired(self, now: datetime) -> bool:
        """True once the logical end time has passed, recorded or not."""
        deadline = self.deadline
        return deadline is not None and now >= deadline

    @property
    def both_sides_funded(self) -> bool:
        return (
            self.team_a.artist_id is not None
            and self.team_b.artist_id is not None
            and self.team_a.funded
            and self.team_b.funded
        )

    @property
    def is_live(self) -> bool:
        return self.status == BattleStatus.LIVE
