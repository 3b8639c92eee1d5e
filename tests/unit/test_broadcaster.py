"""Unit tests for RedisScoreBroadcaster."""

import json
import logging
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.sb_scoring.domain.models import TeamTotals
from src.sb_scoring.infrastructure.broadcaster import RedisScoreBroadcaster, score_channel


async def test_publishes_totals_on_battle_channel() -> None:
    redis = AsyncMock()
    broadcaster = RedisScoreBroadcaster(redis_getter=AsyncMock(return_value=redis))

    await broadcaster.publish(TeamTotals("bt_1", "B", 120, 4))

    channel, payload = redis.publish.await_args.args
    assert channel == score_channel("bt_1") == "battle:bt_1:scores"
    assert json.loads(payload) == {"battle_id": "bt_1", "side": "B", "score": 120, "supporters": 4}


async def test_redis_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    redis = AsyncMock()
    redis.publish.side_effect = RedisConnectionError("down")
    broadcaster = RedisScoreBroadcaster(redis_getter=AsyncMock(return_value=redis))

    with caplog.at_level(logging.WARNING):
        await broadcaster.publish(TeamTotals("bt_1", "A", 10, 1))

    assert "Score publish failed" in caplog.text
