"""
Health check and runtime metrics endpoints
"""
import time

from fastapi import APIRouter

from app.utils.datetime_utils import iso_8601_utc, now_utc

router = APIRouter()

_STARTED_AT = time.monotonic()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "hr-management-backend"}


@router.get("/metrics")
async def metrics():
    """Process uptime in seconds and the current server time"""
    return {
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "timestamp": iso_8601_utc(now_utc()),
    }
