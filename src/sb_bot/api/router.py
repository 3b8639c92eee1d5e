"""sb_bot REST endpoints.

POST /bot/tasks                     — assign a task to a listener (operator)
POST /bot/tasks/{task_id}/complete  — complete own task, credit coins (listener)
GET  /bot/tasks                     — caller's tasks
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.sb_bot.application.schemas import AssignTaskRequest
from src.sb_bot.application.service import BotTaskService
from src.sb_common.database import get_db_session
from src.sb_common.response import ApiResponse, success_response
from src.sb_gateway.auth.dependencies import Principal, get_principal, require_operator

router = APIRouter(prefix="/bot", tags=["bot"])

_service = BotTaskService()


@router.post("/tasks", status_code=status.HTTP_201_CREATED)
async def assign_task(
    body: AssignTaskRequest,
    principal: Annotated[Principal, Depends(require_operator)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.assign_task(db, body)
    return success_response(data.model_dump(mode="json"), request)


@router.post("/tasks/{task_id}/complete")
async def complete_task(
    task_id: str,
    principal: Annotated[Principal, Depends(get_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.complete_task(db, task_id, principal.user_id)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/tasks")
async def list_tasks(
    principal: Annotated[Principal, Depends(get_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    completed: bool | None = Query(None, description="Filter by completion"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_tasks(db, principal.user_id, completed, limit)
    return success_response(data.model_dump(mode="json"), request)
