"""Pydantic schemas and cursor utilities for sb_ledger API."""

import base64
import json

from pydantic import BaseModel

from src.sb_common.coins import coins_to_display

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    account_id: str
    balance: int
    balance_display: str

    @classmethod
    def from_coins(cls, account_id: str, balance: int) -> "BalanceResponse":
        return cls(
            account_id=account_id,
            balance=balance,
            balance_display=coins_to_display(balance),
        )


class LedgerEntryItem(BaseModel):
    id: int
    reason: str
    amount: int
    amount_display: str
    balance_after: int
    battle_id: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool


class AccountAuditResponse(BaseModel):
    account_id: str
    cached_balance: int
    ledger_sum: int
    consistent: bool
