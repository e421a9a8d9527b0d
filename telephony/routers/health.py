from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from telephony.types import TelephonyProvider

router = APIRouter(tags=["health"])


def get_provider(request: Request) -> TelephonyProvider:
    return request.app.state.provider


@router.get("/health")
async def health(provider: TelephonyProvider = Depends(get_provider)) -> dict:
    """Liveness plus the active provider name; never reads a body."""
    return {"ok": True, "provider": provider.name}
