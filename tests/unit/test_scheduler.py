"""Unit tests for BattleScheduler.tick (time-driven start and end)."""

from datetime import timedelta
from unittest.mock import AsyncMock

from src.sb_battle.application.scheduler import BattleScheduler
from src.sb_battle.application.service import BattleLifecycleService
from src.sb_common.datetime_utils import utc_now
from src.sb_common.enums import BattleStatus
from src.sb_common.errors import SettlementFailureError
from src.sb_settlement.application.service import SettlementService
from tests.unit.builders import make_battle
from tests.unit.fakes import (
    FakeBattleRepository,
    FakeLedgerRepository,
    FakeSession,
    FakeSettlementRepository,
)


def _scheduler(battles: FakeBattleRepository, lifecycle=None) -> BattleScheduler:
    if lifecycle is None:
        ledger = FakeLedgerRepository()
        scoring = AsyncMock()
        scoring.apply_pending.return_value = 0
        lifecycle = BattleLifecycleService(
            battle_repo=battles,
            ledger_repo=ledger,
            settlement=SettlementService(
                ledger_repo=ledger,
                settlement_repo=FakeSettlementRepository(),
                winner_share_bps=7000,
                platform_account_id="PLATFORM",
            ),
            scoring=scoring,
            max_settlement_attempts=1,
        )
    return BattleScheduler(
        lifecycle=lifecycle,
        battle_repo=battles,
        session_factory=FakeSession,
        interval_seconds=0.01,
    )


async def test_starts_due_funded_battles_only() -> None:
    battles = FakeBattleRepository()
    due = make_battle("bt_due", status=BattleStatus.SCHEDULED.value, entry_fee=0)
    due.scheduled_at = utc_now() - timedelta(seconds=5)
    later = make_battle("bt_later", status=BattleStatus.SCHEDULED.value, entry_fee=0)
    later.scheduled_at = utc_now() + timedelta(hours=1)
    unfunded = make_battle(
        "bt_open", status=BattleStatus.SCHEDULED.value, entry_fee=0, challenger=None
    )
    unfunded.scheduled_at = utc_now() - timedelta(seconds=5)
    for b in (due, later, unfunded):
        battles.put(b)

    started, ended = await _scheduler(battles).tick()

    assert (started, ended) == (1, 0)
    assert battles.stored["bt_due"].status == "LIVE"
    assert battles.stored["bt_later"].status == "SCHEDULED"
    assert battles.stored["bt_open"].status == "SCHEDULED"


async def test_ends_expired_live_battles() -> None:
    battles = FakeBattleRepository()
    battles.put(make_battle("bt_old", entry_fee=0, started_at=utc_now() - timedelta(minutes=31)))
    battles.put(make_battle("bt_new", entry_fee=0, started_at=utc_now() - timedelta(minutes=1)))

    started, ended = await _scheduler(battles).tick()

    assert (started, ended) == (0, 1)
    assert battles.stored["bt_old"].status == "COMPLETED"
    assert battles.stored["bt_new"].status == "LIVE"


async def test_settlement_failure_does_not_stop_the_tick() -> None:
    battles = FakeBattleRepository()
    for bid in ("bt_1", "bt_2"):
        battles.put(make_battle(bid, started_at=utc_now() - timedelta(minutes=40)))
    lifecycle = AsyncMock()
    lifecycle.end.side_effect = [SettlementFailureError("bt_1", "db down"), None]

    started, ended = await _scheduler(battles, lifecycle).tick()

    assert ended == 1
    assert lifecycle.end.await_count == 2


async def test_start_failure_does_not_skip_ends() -> None:
    battles = FakeBattleRepository()
    due = make_battle("bt_due", status=BattleStatus.SCHEDULED.value, entry_fee=0)
    due.scheduled_at = utc_now() - timedelta(seconds=5)
    battles.put(due)
    battles.put(make_battle("bt_old", started_at=utc_now() - timedelta(minutes=40)))
    lifecycle = AsyncMock()
    lifecycle.start.side_effect = ConnectionError("db down")

    started, ended = await _scheduler(battles, lifecycle).tick()

    assert (started, ended) == (0, 1)
    lifecycle.end.assert_awaited_once()
    assert lifecycle.end.await_args.args[1] == "bt_old"


async def test_background_loop_start_stop() -> None:
    scheduler = _scheduler(FakeBattleRepository())
    await scheduler.start()
    await scheduler.stop()
    await scheduler.stop()
