"""Unit tests for LedgerRepository SQL flow (mocked AsyncSession)."""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.sb_common.enums import LedgerReason
from src.sb_common.errors import InsufficientFundsError, InternalError
from src.sb_ledger.infrastructure.persistence import LedgerRepository

_NOW = datetime(2026, 3, 1, tzinfo=UTC)


def _result(row: object | None) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = row
    return result


def _account_row(balance: int) -> SimpleNamespace:
    return SimpleNamespace(
        account_id="artist-a", balance=balance, version=3, created_at=_NOW, updated_at=_NOW
    )


def _entry_row(amount: int, balance_after: int, reason: str) -> SimpleNamespace:
    return SimpleNamespace(
        id=11,
        account_id="artist-a",
        reason=reason,
        amount=amount,
        balance_after=balance_after,
        battle_id="bt_1",
        reference_id=None,
        description=None,
        created_at=_NOW,
    )


class TestAppend:
    async def test_debit_applies_guarded_update_then_inserts_entry(self) -> None:
        db = AsyncMock()
        # side_effect order: ENSURE, APPLY, INSERT_ENTRY
        db.execute.side_effect = [
            _result(None),
            _result(_account_row(4000)),
            _result(_entry_row(-1000, 4000, "ENTRY_FEE")),
        ]
        repo = LedgerRepository()

        entry = await repo.append(
            db, "artist-a", -1000, LedgerReason.ENTRY_FEE, battle_id="bt_1"
        )

        calls = db.execute.call_args_list
        assert len(calls) == 3
        assert "ON CONFLICT (account_id) DO NOTHING" in str(calls[0].args[0])
        apply_sql = str(calls[1].args[0])
        assert "balance + :amount >= 0" in apply_sql
        assert calls[1].args[1] == {"account_id": "artist-a", "amount": -1000}
        insert_params = calls[2].args[1]
        assert insert_params["reason"] == "ENTRY_FEE"
        assert insert_params["balance_after"] == 4000
        assert insert_params["battle_id"] == "bt_1"
        assert entry.id == 11
        assert entry.balance_after == 4000

    async def test_overdraw_raises_and_skips_entry(self) -> None:
        db = AsyncMock()
        # ENSURE, APPLY (0 rows), GET_ACCOUNT
        db.execute.side_effect = [
            _result(None),
            _result(None),
            _result(_account_row(250)),
        ]
        repo = LedgerRepository()

        with pytest.raises(InsufficientFundsError) as exc_info:
            await repo.append(db, "artist-a", -1000, LedgerReason.ENTRY_FEE)

        assert exc_info.value.required == 1000
        assert exc_info.value.available == 250
        assert db.execute.call_count == 3

    async def test_wrong_sign_rejected_before_sql(self) -> None:
        db = AsyncMock()
        repo = LedgerRepository()
        with pytest.raises(InternalError):
            await repo.append(db, "artist-a", 1000, LedgerReason.ENTRY_FEE)
        with pytest.raises(InternalError):
            await repo.append(db, "artist-a", -5, LedgerReason.REFUND)
        db.execute.assert_not_called()


class TestReads:
    async def test_get_account_none(self) -> None:
        db = AsyncMock()
        db.execute.return_value = _result(None)
        assert await LedgerRepository().get_account(db, "nobody") is None

    async def test_list_entries_passes_null_filters(self) -> None:
        db = AsyncMock()
        result = MagicMock()
        result.fetchall.return_value = [_entry_row(500, 500, "BOT_EARNING")]
        db.execute.return_value = result

        entries = await LedgerRepository().list_entries(db, "artist-a", None, 21, None)

        params = db.execute.call_args.args[1]
        assert params == {"account_id": "artist-a", "cursor_id": None, "reason": None, "limit": 21}
        assert entries[0].reason == "BOT_EARNING"

    async def test_sum_entries(self) -> None:
        db = AsyncMock()
        result = MagicMock()
        result.scalar_one.return_value = 1234
        db.execute.return_value = result
        assert await LedgerRepository().sum_entries(db, "artist-a") == 1234
