"""Domain models for sb_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.sb_common.enums import LedgerReason
from src.sb_common.errors import InternalError

# Reasons that take coins out of an account. Everything else credits.
DEBIT_REASONS = frozenset({LedgerReason.ENTRY_FEE})


@dataclass
class CoinAccount:
    account_id: str          # listener / artist identity, or PLATFORM
    balance: int             # coins, cached fold of ledger entries
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LedgerEntry:
    id: int                          # BIGSERIAL
    account_id: str
    reason: str                      # LedgerReason value
    amount: int                      # coins, positive=credit negative=debit
    balance_after: int               # coins, balance snapshot after append
    battle_id: str | None = None
    reference_id: str | None = None  # bot task id, refunded entry id, ...
    description: str | None = None
    created_at: datetime | None = None


def check_entry_sign(reason: LedgerReason | str, amount: int) -> None:
    """Debit reasons must carry a negative amount, credit reasons a positive one."""
    reason = LedgerReason(reason)
    if amount == 0:
        raise InternalError("Ledger entries must move a non-zero amount")
    if reason in DEBIT_REASONS and amount > 0:
        raise InternalError(f"{reason.value} must be a debit, got {amount}")
    if reason not in DEBIT_REASONS and amount < 0:
        raise InternalError(f"{reason.value} must be a credit, got {amount}")
