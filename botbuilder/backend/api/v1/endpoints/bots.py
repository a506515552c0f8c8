"""
Bots API Endpoints.

REST API endpoints for bot registration, menu editing, and analytics.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from botbuilder.backend.core.dependencies import DbSession, RequestId, Transport
from botbuilder.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)
from botbuilder.backend.schemas.base import ApiResponse
from botbuilder.backend.schemas.bot import (
    BotAnalyticsResponse,
    BotCreate,
    BotInteractionResponse,
    BotResponse,
    BotUpdate,
    MenuStructureUpdate,
)
from botbuilder.backend.services.bot import BotService

router = APIRouter()


@router.post(
    "",
    response_model=ApiResponse[BotResponse],
    status_code=201,
    summary="Register a bot",
    description="Register a Telegram bot by token and point its webhook at this server.",
)
async def create_bot(
    data: BotCreate,
    db: DbSession,
    transport: Transport,
    request_id: RequestId,
) -> ApiResponse[BotResponse]:
    """Register a bot."""
    service = BotService(db, transport)
    bot = await service.create_bot(data)
    return ApiResponse(data=BotResponse.model_validate(bot))


@router.get(
    "",
    summary="List bots (paginated)",
    description="Get a paginated list of bots, newest first.",
)
async def list_bots(
    db: DbSession,
    transport: Transport,
    request_id: RequestId,
    pagination: PaginationParams = Depends(get_pagination_params),
) -> dict[str, Any]:
    """List bots with pagination."""
    service = BotService(db, transport)
    bots, total = await service.list_bots_paginated(
        limit=pagination.limit,
        offset=pagination.offset,
    )

    return create_paginated_response(
        items=bots,
        item_schema=BotResponse,
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        request_id=request_id,
    )


@router.get(
    "/{bot_id}",
    response_model=ApiResponse[BotResponse],
    summary="Get a bot",
)
async def get_bot(
    bot_id: str,
    db: DbSession,
    transport: Transport,
    request_id: RequestId,
) -> ApiResponse[BotResponse]:
    """Get a bot by ID."""
    service = BotService(db, transport)
    bot = await service.get_bot(bot_id)
    return ApiResponse(data=BotResponse.model_validate(bot))


@router.patch(
    "/{bot_id}",
    response_model=ApiResponse[BotResponse],
    summary="Update a bot",
    description="Update name, description, active flag or settings. Only provided fields are updated.",
)
async def update_bot(
    bot_id: str,
    data: BotUpdate,
    db: DbSession,
    transport: Transport,
    request_id: RequestId,
) -> ApiResponse[BotResponse]:
    """Update a bot."""
    service = BotService(db, transport)
    bot = await service.update_bot(bot_id, data)
    return ApiResponse(data=BotResponse.model_validate(bot))


@router.delete(
    "/{bot_id}",
    status_code=204,
    summary="Delete a bot",
)
async def delete_bot(
    bot_id: str,
    db: DbSession,
    transport: Transport,
    request_id: RequestId,
) -> None:
    """Delete a bot."""
    service = BotService(db, transport)
    await service.delete_bot(bot_id)


@router.put(
    "/{bot_id}/menu",
    response_model=ApiResponse[BotResponse],
    summary="Save the menu tree",
    description="Replace the bot's whole menu tree. The tree is validated before it is stored.",
)
async def replace_menu(
    bot_id: str,
    data: MenuStructureUpdate,
    db: DbSession,
    transport: Transport,
    request_id: RequestId,
) -> ApiResponse[BotResponse]:
    """Replace the menu tree of a bot."""
    service = BotService(db, transport)
    bot = await service.replace_menu(bot_id, data.menu_structure)
    return ApiResponse(data=BotResponse.model_validate(bot))


@router.get(
    "/{bot_id}/analytics",
    response_model=ApiResponse[list[BotAnalyticsResponse]],
    summary="Daily analytics",
    description="Per-day message and user counters, newest day first.",
)
async def get_analytics(
    bot_id: str,
    db: DbSession,
    transport: Transport,
    request_id: RequestId,
    days: int = Query(default=30, ge=1, le=366, description="Number of days to return"),
) -> ApiResponse[list[BotAnalyticsResponse]]:
    """Get daily analytics of a bot."""
    service = BotService(db, transport)
    rows = await service.get_analytics(bot_id, limit=days)
    return ApiResponse(data=[BotAnalyticsResponse.model_validate(row) for row in rows])


@router.get(
    "/{bot_id}/interactions",
    response_model=ApiResponse[list[BotInteractionResponse]],
    summary="Recent interactions",
)
async def get_interactions(
    bot_id: str,
    db: DbSession,
    transport: Transport,
    request_id: RequestId,
    limit: int = Query(default=50, ge=1, le=500),
) -> ApiResponse[list[BotInteractionResponse]]:
    """Get the most recent interactions of a bot."""
    service = BotService(db, transport)
    rows = await service.get_interactions(bot_id, limit=limit)
    return ApiResponse(data=[BotInteractionResponse.model_validate(row) for row in rows])
