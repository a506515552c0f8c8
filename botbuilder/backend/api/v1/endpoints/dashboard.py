"""
Dashboard API Endpoints.
"""

from fastapi import APIRouter

from botbuilder.backend.core.dependencies import DbSession, RequestId, Transport
from botbuilder.backend.schemas.base import ApiResponse
from botbuilder.backend.schemas.bot import DashboardStats
from botbuilder.backend.services.bot import BotService

router = APIRouter()


@router.get(
    "/stats",
    response_model=ApiResponse[DashboardStats],
    summary="Dashboard totals",
    description="Bot counts, total messages received and distinct Telegram users.",
)
async def get_dashboard_stats(
    db: DbSession,
    transport: Transport,
    request_id: RequestId,
) -> ApiResponse[DashboardStats]:
    """Get dashboard statistics."""
    service = BotService(db, transport)
    return ApiResponse(data=await service.get_dashboard_stats())
