"""Pydantic schemas for the stream submission endpoint."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class StreamSubmitRequest(BaseModel):
    song_id: str
    team_side: str  # validated by the ingestor so an unknown side maps to UnknownTeam
    client_nonce: str = Field(..., min_length=1, max_length=64)
    played_at: datetime | None = None

    @field_validator("client_nonce")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        if v != v.strip() or " " in v:
            raise ValueError("client_nonce must not contain whitespace")
        return v


class StreamSubmitResponse(BaseModel):
    event_id: str
    battle_id: str
    song_id: str
    team_side: str
    outcome: str
    replayed: bool = False
    received_at: datetime
