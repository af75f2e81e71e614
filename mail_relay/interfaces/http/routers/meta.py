from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends

from mail_relay.config.settings import SERVICE_NAME, SERVICE_VERSION, Settings
from mail_relay.interfaces.http.deps import get_app_settings

router = APIRouter(tags=["meta"])


@router.get("/")
async def service_info(settings: Settings = Depends(get_app_settings)) -> dict[str, Any]:
    email_base = f"{settings.api_prefix}/email"
    return {
        "success": True,
        "message": f"{SERVICE_NAME} is running",
        "version": SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoints": {
            "docs": "/docs",
            "email": email_base,
            "health": f"{email_base}/health",
            "test": f"{email_base}/test",
        },
    }


@router.get("/api")
async def api_info(settings: Settings = Depends(get_app_settings)) -> dict[str, Any]:
    email_base = f"{settings.api_prefix}/email"
    return {
        "success": True,
        "message": f"{SERVICE_NAME} API",
        "version": settings.api_version,
        "documentation": "/docs",
        "endpoints": {
            "sendEmail": f"POST {email_base}/send",
            "testConnection": f"GET {email_base}/test",
            "healthCheck": f"GET {email_base}/health",
        },
    }
