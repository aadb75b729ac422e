"""au_account REST API: balance, top-up, withdrawal and ledger history."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_account.application.schemas import DepositRequest, WithdrawRequest
from src.au_account.application.service import AccountApplicationService
from src.au_common.database import get_db_session
from src.au_common.enums import LedgerEntryType
from src.au_common.response import ApiResponse, success_response
from src.au_gateway.auth.dependencies import CurrentUser, get_current_user

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()


@router.get("/balance")
async def get_balance(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, current_user.user_id)
    return success_response(data, request)


@router.post("/deposit")
async def deposit(
    body: DepositRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.deposit(db, current_user.user_id, body.amount)
    return success_response(data, request)


@router.post("/withdraw")
async def withdraw(
    body: WithdrawRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.withdraw(db, current_user.user_id, body.amount)
    return success_response(data, request)


@router.get("/ledger")
async def list_ledger(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: LedgerEntryType | None = Query(None, description="Filter by entry type"),
) -> ApiResponse:
    data = await _service.list_ledger(
        db, current_user.user_id, cursor, limit, entry_type.value if entry_type else None
    )
    return success_response(data, request)
