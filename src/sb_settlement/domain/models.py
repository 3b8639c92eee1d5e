"""Domain models for sb_settlement — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

TIE = "TIE"


@dataclass(frozen=True)
class Payout:
    account_id: str
    amount: int


@dataclass
class SettlementPlan:
    winner_side: str | None          # "A", "B" or TIE
    payouts: list[Payout] = field(default_factory=list)
    platform_share: int = 0

    @property
    def total_paid(self) -> int:
        return sum(p.amount for p in self.payouts)


@dataclass
class Settlement:
    """One per battle. The battle_id primary key is the idempotency key."""

    battle_id: str
    kind: str                        # SettlementKind value
    winner_side: str | None
    total_paid: int
    platform_share: int
    created_at: datetime | None = None
