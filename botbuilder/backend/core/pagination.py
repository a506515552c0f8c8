"""
Offset Pagination.

List endpoints take `?limit=&offset=` and answer with a PaginatedResponse
whose `pagination.has_more` tells the client whether to ask for the next page.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from fastapi import Query
from pydantic import BaseModel

from botbuilder.backend.schemas.base import PaginatedResponse, PaginationInfo, ResponseMetadata

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass
class PaginationParams:
    limit: int
    offset: int


def get_pagination_params(
    limit: int = Query(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        le=MAX_PAGE_SIZE,
        description="Maximum number of items to return",
    ),
    offset: int = Query(default=0, ge=0, description="Number of items to skip"),
) -> PaginationParams:
    """
    FastAPI dependency for the limit/offset query parameters.

    Usage:
        pagination: PaginationParams = Depends(get_pagination_params)
    """
    return PaginationParams(limit=limit, offset=offset)


def create_paginated_response(
    items: Sequence[Any],
    item_schema: type[BaseModel],
    total: int,
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
    request_id: str | None = None,
) -> dict[str, Any]:
    """
    Serialize one page of ORM objects (or dicts) through `item_schema`.

    Fields the schema does not declare, such as a bot's token, never reach
    the response.
    """
    page = PaginatedResponse(
        data=[item_schema.model_validate(item).model_dump(mode="json") for item in items],
        pagination=PaginationInfo(
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(items) < total,
        ),
        metadata=ResponseMetadata(request_id=request_id),
    )
    return page.model_dump(mode="json")
