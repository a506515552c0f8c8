"""
API Version 1 Router.

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from botbuilder.backend.api.v1.endpoints import bots, dashboard

router = APIRouter()

# Bot management endpoints
router.include_router(bots.router, prefix="/bots", tags=["bots"])

# Dashboard endpoints
router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
