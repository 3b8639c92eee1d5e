"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.sb_battle.api.router import router as battle_router
from src.sb_battle.application.scheduler import BattleScheduler
from src.sb_bot.api.router import router as bot_router
from src.sb_common.database import check_database, engine
from src.sb_common.errors import AppError
from src.sb_common.redis_client import check_redis, close_redis
from src.sb_common.response import error_response
from src.sb_gateway.middleware.request_log import RequestLogMiddleware
from src.sb_ledger.api.router import router as ledger_router
from src.sb_scoring.application.pipeline import get_scoring_pipeline
from src.sb_streaming.api.router import router as stream_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, start scoring workers and the scheduler.
    Shutdown: stop background tasks, then dispose."""
    # Startup
    await check_database()
    await check_redis()

    pipeline = get_scoring_pipeline()
    await pipeline.start()
    await pipeline.recover()

    scheduler: BattleScheduler | None = None
    if settings.SCHEDULER_ENABLED:
        scheduler = BattleScheduler()
        await scheduler.start()
    yield
    # Shutdown
    if scheduler is not None:
        await scheduler.stop()
    await pipeline.stop()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request)
    if exc.http_status >= 500:
        logger.error("[%d] %s %s", exc.code, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(battle_router, prefix="/api/v1")
app.include_router(stream_router, prefix="/api/v1")
app.include_router(ledger_router, prefix="/api/v1")
app.include_router(bot_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
