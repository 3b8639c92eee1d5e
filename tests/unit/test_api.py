"""HTTP-level tests: routing, auth, response envelope and error mapping.

Routers get in-memory services so no database is needed.
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.sb_battle.application.service import BattleLifecycleService
from src.sb_common.datetime_utils import utc_now
from src.sb_ledger.application.service import LedgerApplicationService
from src.sb_settlement.application.service import SettlementService
from src.sb_streaming.application.service import StreamIngestService
from tests.unit.builders import make_battle
from tests.unit.fakes import (
    FakeBattleRepository,
    FakeLedgerRepository,
    FakeSettlementRepository,
    FakeStreamEventRepository,
    RecordingPublisher,
)

_SONGS = [
    {"song_id": "s1", "title": "One", "artist_name": "DJ A", "duration_seconds": 180},
    {"song_id": "s2", "title": "Two", "artist_name": "DJ B", "duration_seconds": 200},
]


@pytest.fixture
def ledger() -> FakeLedgerRepository:
    repo = FakeLedgerRepository()
    repo.seed("artist-a", 5000)
    return repo


@pytest.fixture
def battles(monkeypatch: pytest.MonkeyPatch, ledger: FakeLedgerRepository) -> FakeBattleRepository:
    repo = FakeBattleRepository()
    scoring = AsyncMock()
    scoring.apply_pending.return_value = 0
    service = BattleLifecycleService(
        battle_repo=repo,
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
    monkeypatch.setattr("src.sb_battle.api.router._service", service)
    return repo


async def test_health(client) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_missing_token_is_401(client) -> None:
    resp = await client.get("/api/v1/ledger/balance")
    assert resp.status_code == 401


class TestBattleEndpoints:
    async def test_listener_cannot_create_battle(self, client, auth_header, battles) -> None:
        resp = await client.post(
            "/api/v1/battles",
            json={"name": "X", "songs": _SONGS, "duration_minutes": 30},
            headers=auth_header("listener-1", "listener"),
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == 1002

    async def test_create_charges_creator(self, client, auth_header, battles, ledger) -> None:
        resp = await client.post(
            "/api/v1/battles",
            json={
                "name": "Friday Night",
                "songs": _SONGS,
                "duration_minutes": 30,
                "entry_fee": 1000,
            },
            headers=auth_header("artist-a", "artist"),
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["status"] == "SCHEDULED"
        assert body["data"]["total_pot"] == 2000
        assert ledger.balance("artist-a") == 4000

    async def test_unknown_battle_is_404(self, client, auth_header, battles) -> None:
        resp = await client.get("/api/v1/battles/bt_missing", headers=auth_header())
        assert resp.status_code == 404
        assert resp.json()["code"] == 3002

    async def test_end_requires_operator(self, client, auth_header, battles) -> None:
        battles.put(make_battle())
        resp = await client.post("/api/v1/battles/bt_1/end", headers=auth_header("artist-a", "artist"))
        assert resp.status_code == 403

    async def test_operator_ends_battle(self, client, auth_header, battles, ledger) -> None:
        battles.put(make_battle(score_a=50, score_b=10))
        resp = await client.post(
            "/api/v1/battles/bt_1/end", headers=auth_header("ops", "operator")
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["battle"]["status"] == "COMPLETED"
        assert data["settlement"]["winner_side"] == "A"
        assert ledger.balance("artist-a") == 5000 + 1400

    async def test_second_end_is_conflict(self, client, auth_header, battles) -> None:
        battles.put(make_battle(entry_fee=0))
        headers = auth_header("ops", "operator")
        await client.post("/api/v1/battles/bt_1/end", headers=headers)
        resp = await client.post("/api/v1/battles/bt_1/end", headers=headers)
        assert resp.status_code == 409
        assert resp.json()["code"] == 3003


class TestStreamEndpoint:
    async def test_submit_accepted(self, client, auth_header, monkeypatch) -> None:
        repo = FakeBattleRepository()
        repo.put(make_battle(started_at=utc_now() - timedelta(minutes=1)))
        service = StreamIngestService(
            battle_repo=repo,
            event_repo=FakeStreamEventRepository(),
            publisher=RecordingPublisher(),
            min_window_seconds=30,
        )
        monkeypatch.setattr(
            "src.sb_streaming.api.router.get_ingest_service", lambda: service
        )

        resp = await client.post(
            "/api/v1/battles/bt_1/streams",
            json={"song_id": "song-0", "team_side": "B", "client_nonce": "n-1"},
            headers=auth_header(),
        )

        assert resp.status_code == 202
        assert resp.json()["data"]["outcome"] == "SCORED"

    async def test_whitespace_nonce_is_422(self, client, auth_header) -> None:
        resp = await client.post(
            "/api/v1/battles/bt_1/streams",
            json={"song_id": "song-0", "team_side": "A", "client_nonce": "a b"},
            headers=auth_header(),
        )
        assert resp.status_code == 422


async def test_balance_of_caller(client, auth_header, monkeypatch, ledger) -> None:
    monkeypatch.setattr(
        "src.sb_ledger.api.router._service", LedgerApplicationService(repo=ledger)
    )
    resp = await client.get("/api/v1/ledger/balance", headers=auth_header("artist-a"))
    assert resp.status_code == 200
    assert resp.json()["data"]["balance"] == 5000


async def test_request_id_from_edge_is_echoed(client, auth_header, monkeypatch, ledger) -> None:
    monkeypatch.setattr(
        "src.sb_ledger.api.router._service", LedgerApplicationService(repo=ledger)
    )
    headers = {**auth_header("artist-a"), "X-Request-ID": "edge-123"}
    resp = await client.get("/api/v1/ledger/balance", headers=headers)
    assert resp.headers["X-Request-ID"] == "edge-123"
    assert resp.json()["request_id"] == "edge-123"
