"""sb_battle REST endpoints.

POST /battles                     — create (artist, pays entry fee)
POST /battles/{battle_id}/join    — take the challenger slot (artist, pays entry fee)
POST /battles/{battle_id}/start   — SCHEDULED → LIVE (creator or operator)
POST /battles/{battle_id}/end     — LIVE → COMPLETED + payout (operator)
POST /battles/{battle_id}/cancel  — refund entry fees (creator or operator)
GET  /battles                     — live / upcoming / finished lists
GET  /battles/{battle_id}         — detail with live scores
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_battle.application.schemas import (
    CancelBattleRequest,
    CreateBattleRequest,
    JoinBattleRequest,
)
from src.sb_battle.application.service import get_lifecycle_service
from src.sb_common.database import get_db_session
from src.sb_common.enums import BattleStatus
from src.sb_common.response import ApiResponse, success_response
from src.sb_gateway.auth.dependencies import (
    Principal,
    get_principal,
    require_artist,
    require_operator,
)

router = APIRouter(prefix="/battles", tags=["battles"])

_service = get_lifecycle_service()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_battle(
    body: CreateBattleRequest,
    principal: Annotated[Principal, Depends(require_artist)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create(db, principal.user_id, body)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{battle_id}/join")
async def join_battle(
    battle_id: str,
    body: JoinBattleRequest,
    principal: Annotated[Principal, Depends(require_artist)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.join(db, battle_id, principal.user_id, body)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{battle_id}/start")
async def start_battle(
    battle_id: str,
    principal: Annotated[Principal, Depends(get_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.start(db, battle_id, principal)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{battle_id}/end")
async def end_battle(
    battle_id: str,
    principal: Annotated[Principal, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.end(db, battle_id)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/{battle_id}/cancel")
async def cancel_battle(
    battle_id: str,
    body: CancelBattleRequest,
    principal: Annotated[Principal, Depends(get_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.cancel(db, battle_id, body, principal)
    return success_response(data.model_dump(mode="json"), request)


@router.get("")
async def list_battles(
    principal: Annotated[Principal, Depends(get_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status_filter: BattleStatus | None = Query(
        None, alias="status", description="Filter by battle status"
    ),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_battles(
        db, status_filter.value if status_filter else None, limit
    )
    return success_response(data.model_dump(mode="json"), request)


@router.get("/{battle_id}")
async def get_battle(
    battle_id: str,
    principal: Annotated[Principal, Depends(get_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get(db, battle_id)
    return success_response(data.model_dump(mode="json"), request)
