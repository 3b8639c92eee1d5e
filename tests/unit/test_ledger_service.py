"""Unit tests for LedgerApplicationService and the ledger fold invariant."""

import asyncio

import pytest

from src.sb_common.enums import LedgerReason
from src.sb_common.errors import InsufficientFundsError, InternalError
from src.sb_ledger.application.schemas import cursor_decode, cursor_encode
from src.sb_ledger.application.service import LedgerApplicationService
from tests.unit.fakes import FakeLedgerRepository, FakeSession


class TestGetBalance:
    async def test_unknown_account_has_zero_balance(self) -> None:
        svc = LedgerApplicationService(repo=FakeLedgerRepository())
        result = await svc.get_balance(FakeSession(), "new-listener")
        assert result.balance == 0
        assert result.balance_display == "0 coins"

    async def test_balance_after_credit(self) -> None:
        repo = FakeLedgerRepository()
        repo.seed("listener-1", 2500)
        result = await LedgerApplicationService(repo=repo).get_balance(FakeSession(), "listener-1")
        assert result.balance == 2500
        assert result.balance_display == "2,500 coins"


class TestListEntries:
    async def test_pagination_with_cursor(self) -> None:
        repo = FakeLedgerRepository()
        for _ in range(5):
            repo.seed("listener-1", 100)
        svc = LedgerApplicationService(repo=repo)

        first = await svc.list_entries(FakeSession(), "listener-1", None, 2, None)
        assert [i.id for i in first.items] == [5, 4]
        assert first.has_more
        second = await svc.list_entries(FakeSession(), "listener-1", first.next_cursor, 2, None)
        assert [i.id for i in second.items] == [3, 2]
        last = await svc.list_entries(FakeSession(), "listener-1", second.next_cursor, 2, None)
        assert [i.id for i in last.items] == [1]
        assert not last.has_more
        assert last.next_cursor is None

    async def test_reason_filter(self) -> None:
        repo = FakeLedgerRepository()
        repo.seed("artist-a", 5000)
        await repo.append(None, "artist-a", -1000, LedgerReason.ENTRY_FEE, battle_id="bt_1")
        svc = LedgerApplicationService(repo=repo)

        page = await svc.list_entries(FakeSession(), "artist-a", None, 10, "ENTRY_FEE")

        assert len(page.items) == 1
        assert page.items[0].amount == -1000
        assert page.items[0].amount_display == "-1,000 coins"


class TestCursor:
    def test_round_trip(self) -> None:
        assert cursor_decode(cursor_encode(42)) == 42

    def test_garbage_cursor_is_ignored(self) -> None:
        assert cursor_decode("not-base64!!") is None
        assert cursor_decode(None) is None


class TestLedgerFold:
    async def test_concurrent_debits_never_overdraw(self) -> None:
        repo = FakeLedgerRepository()
        repo.seed("artist-a", 3000)

        async def debit(i: int) -> bool:
            try:
                await repo.append(None, "artist-a", -1000, LedgerReason.ENTRY_FEE, battle_id=f"bt_{i}")
            except InsufficientFundsError:
                return False
            return True

        results = await asyncio.gather(*(debit(i) for i in range(10)))

        assert sum(results) == 3
        assert repo.balance("artist-a") == 0

    async def test_verify_account_consistent(self) -> None:
        repo = FakeLedgerRepository()
        repo.seed("artist-a", 3000)
        await repo.append(None, "artist-a", -1000, LedgerReason.ENTRY_FEE, battle_id="bt_1")
        await repo.append(None, "artist-a", 1400, LedgerReason.BATTLE_PAYOUT, battle_id="bt_1")

        audit = await LedgerApplicationService(repo=repo).verify_account(FakeSession(), "artist-a")

        assert audit.consistent
        assert audit.cached_balance == audit.ledger_sum == 3400

    async def test_verify_account_detects_drift(self) -> None:
        repo = FakeLedgerRepository()
        repo.seed("artist-a", 3000)
        repo.accounts["artist-a"].balance = 9999

        audit = await LedgerApplicationService(repo=repo).verify_account(FakeSession(), "artist-a")

        assert not audit.consistent
        assert audit.ledger_sum == 3000

    async def test_zero_amount_rejected(self) -> None:
        with pytest.raises(InternalError):
            await FakeLedgerRepository().append(None, "x", 0, LedgerReason.REFUND)
