"""Live score fan-out over Redis Pub/Sub.

Clients subscribe to ``battle:{battle_id}:scores`` to observe team totals as
they change. Best effort: PostgreSQL holds the authoritative aggregates, a
failed publish is logged and the next increment carries fresh totals.
"""

import json
import logging
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.sb_common.redis_client import get_redis
from src.sb_scoring.domain.models import TeamTotals

logger = logging.getLogger(__name__)


def score_channel(battle_id: str) -> str:
    return f"battle:{battle_id}:scores"


class RedisScoreBroadcaster:
    def __init__(
        self, redis_getter: Callable[[], Awaitable[aioredis.Redis]] = get_redis
    ) -> None:
        self._redis_getter = redis_getter

    async def publish(self, totals: TeamTotals) -> None:
        payload = json.dumps(
            {
                "battle_id": totals.battle_id,
                "side": totals.side,
                "score": totals.score,
                "supporters": totals.supporters,
            }
        )
        try:
            redis = await self._redis_getter()
            await redis.publish(score_channel(totals.battle_id), payload)
        except RedisError as exc:
            logger.warning(
                "Score publish failed: battle=%s side=%s err=%s",
                totals.battle_id,
                totals.side,
                exc,
            )
