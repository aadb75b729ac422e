# src/au_admin/api/router.py
"""Admin REST API."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.au_admin.application.service import AdminService
from src.au_common.database import get_db_session
from src.au_common.response import ApiResponse, success_response
from src.au_gateway.auth.dependencies import CurrentUser, require_admin

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()


@router.post("/auctions/finalize-expired")
async def finalize_expired_auctions(
    admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.finalize_expired(db)
    return success_response(result, request)
