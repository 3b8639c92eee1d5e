"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class BattleStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    LIVE = "LIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class TeamSide(str, Enum):
    A = "A"
    B = "B"


class LedgerReason(str, Enum):
    ENTRY_FEE = "ENTRY_FEE"
    BOT_EARNING = "BOT_EARNING"
    BATTLE_PAYOUT = "BATTLE_PAYOUT"
    REFUND = "REFUND"


class StreamOutcome(str, Enum):
    """Result of a stream submission. DUPLICATE is recorded but scores zero."""
    SCORED = "SCORED"
    DUPLICATE = "DUPLICATE"


class SettlementKind(str, Enum):
    PAYOUT = "PAYOUT"
    REFUND = "REFUND"


class Role(str, Enum):
    LISTENER = "listener"
    ARTIST = "artist"
    OPERATOR = "operator"
