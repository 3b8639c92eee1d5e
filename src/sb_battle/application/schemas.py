"""Pydantic schemas for the sb_battle API."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.sb_battle.domain.models import Battle
from src.sb_common.coins import coins_to_display
from src.sb_settlement.domain.models import Settlement

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class SongSpec(BaseModel):
    song_id: str
    title: str
    artist_name: str
    duration_seconds: int


class CreateBattleRequest(BaseModel):
    # Counts and ranges are checked by validate_battle_spec so that every
    # violation surfaces as InvalidSpec (3001) instead of a 422 from pydantic.
    name: str
    songs: list[SongSpec]
    duration_minutes: int
    entry_fee: int = 0
    scheduled_at: datetime | None = None
    team_name: str | None = Field(None, max_length=100)
    creator_photo_url: str | None = None


class JoinBattleRequest(BaseModel):
    team_name: str | None = Field(None, max_length=100)


class CancelBattleRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=200)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class TeamResponse(BaseModel):
    side: str
    name: str
    artist_id: str | None
    score: int
    supporters: int
    funded: bool


class SongResponse(BaseModel):
    song_id: str
    title: str
    artist_name: str
    duration_seconds: int
    position: int


class BattleResponse(BaseModel):
    id: str
    name: str
    creator_id: str
    status: str
    duration_minutes: int
    entry_fee: int
    entry_fee_display: str
    total_pot: int
    total_pot_display: str
    stream_revenue: int
    team_a: TeamResponse
    team_b: TeamResponse
    songs: list[SongResponse]
    scheduled_at: datetime | None = None
    started_at: datetime | None = None
    ends_at: datetime | None = None
    ended_at: datetime | None = None
    cancel_reason: str | None = None
    creator_photo_url: str | None = None

    @classmethod
    def from_domain(cls, battle: Battle) -> "BattleResponse":
        return cls(
            id=battle.id,
            name=battle.name,
            creator_id=battle.creator_id,
            status=battle.status,
            duration_minutes=battle.duration_minutes,
            entry_fee=battle.entry_fee,
            entry_fee_display=coins_to_display(battle.entry_fee),
            total_pot=battle.total_pot,
            total_pot_display=coins_to_display(battle.total_pot),
            stream_revenue=battle.stream_revenue,
            team_a=TeamResponse(**vars(battle.team_a)),
            team_b=TeamResponse(**vars(battle.team_b)),
            songs=[
                SongResponse(
                    song_id=s.song_id,
                    title=s.title,
                    artist_name=s.artist_name,
                    duration_seconds=s.duration_seconds,
                    position=s.position,
                )
                for s in battle.songs
            ],
            scheduled_at=battle.scheduled_at,
            started_at=battle.started_at,
            ends_at=battle.deadline,
            ended_at=battle.ended_at,
            cancel_reason=battle.cancel_reason,
            creator_photo_url=battle.creator_photo_url,
        )


class BattleListResponse(BaseModel):
    items: list[BattleResponse]


class SettlementResponse(BaseModel):
    kind: str
    winner_side: str | None
    total_paid: int
    platform_share: int

    @classmethod
    def from_domain(cls, settlement: Settlement) -> "SettlementResponse":
        return cls(
            kind=settlement.kind,
            winner_side=settlement.winner_side,
            total_paid=settlement.total_paid,
            platform_share=settlement.platform_share,
        )


class BattleOutcomeResponse(BaseModel):
    """Returned by end and cancel: final battle state plus what was paid."""

    battle: BattleResponse
    settlement: SettlementResponse
