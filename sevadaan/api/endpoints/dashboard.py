# sevadaan/api/endpoints/dashboard.py

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sevadaan.api.deps import get_db_session
from sevadaan.core.rbac import require_permission
from sevadaan.core.responses import ok
from sevadaan.models.user import User
from sevadaan.services.dashboard_service import get_dashboard

router = APIRouter(prefix="/api/v1/dashboard", tags=["Dashboard"])


@router.get("/")
async def dashboard(
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_permission("dashboard", "read")),
):
    summary = await get_dashboard(session, current_user)
    return ok(summary)
