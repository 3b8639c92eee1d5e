"""sb_streaming REST API — listener play submission."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_common.database import get_db_session
from src.sb_common.response import ApiResponse, success_response
from src.sb_gateway.auth.dependencies import Principal, get_principal
from src.sb_streaming.application.schemas import StreamSubmitRequest
from src.sb_streaming.application.service import get_ingest_service

router = APIRouter(prefix="/battles", tags=["streams"])


@router.post("/{battle_id}/streams", status_code=status.HTTP_202_ACCEPTED)
async def submit_stream_event(
    battle_id: str,
    body: StreamSubmitRequest,
    principal: Annotated[Principal, Depends(get_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await get_ingest_service().submit(db, principal.user_id, battle_id, body)
    return success_response(data.model_dump(mode="json"), request)
