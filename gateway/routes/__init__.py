"""Router aggregation for the webhook ingress server."""

from __future__ import annotations

from fastapi import APIRouter

from telephony.routers import health as health_router_module
from telephony.routers import webhooks as webhooks_router_module

# Health must be registered before the webhook catch-all route
api_router = APIRouter()
api_router.include_router(health_router_module.router)
api_router.include_router(webhooks_router_module.router)

__all__ = ["api_router"]
