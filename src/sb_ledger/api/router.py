"""sb_ledger REST API — balance and entry history of the caller's coin account."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_common.database import get_db_session
from src.sb_common.enums import LedgerReason
from src.sb_common.response import ApiResponse, success_response
from src.sb_gateway.auth.dependencies import Principal, get_principal, require_operator
from src.sb_ledger.application.service import LedgerApplicationService

router = APIRouter(prefix="/ledger", tags=["ledger"])

_service = LedgerApplicationService()


@router.get("/balance")
async def get_balance(
    principal: Annotated[Principal, Depends(get_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, principal.user_id)
    return success_response(data.model_dump(), request)


@router.get("/entries")
async def list_entries(
    principal: Annotated[Principal, Depends(get_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    reason: LedgerReason | None = Query(None, description="Filter by ledger reason"),
) -> ApiResponse:
    data = await _service.list_entries(
        db, principal.user_id, cursor, limit, reason.value if reason else None
    )
    return success_response(data.model_dump(), request)


@router.get("/accounts/{account_id}/audit")
async def audit_account(
    account_id: str,
    principal: Annotated[Principal, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.verify_account(db, account_id)
    return success_response(data.model_dump(), request)
