"""Domain models for sb_scoring — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ScoringUnit:
    """One scoring-eligible stream, emitted by the ingestor exactly once per
    accepted event and possibly delivered more than once."""

    event_id: str
    battle_id: str
    listener_id: str
    team_side: str


@dataclass
class TeamTotals:
    battle_id: str
    side: str
    score: int
    supporters: int


@dataclass
class ApplyResult:
    applied: bool                    # False: event id was already applied
    points: int = 0
    new_supporter: bool = False
    totals: TeamTotals | None = None  # None when nothing was incremented
