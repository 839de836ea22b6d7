from datetime import datetime, timezone
from fastapi import APIRouter, Request

from services.stats_service import uptime_seconds

router = APIRouter(tags=["health"])

SERVICE_NAME = "Static Site Hosting Bot"


async def _database_status(request: Request) -> str:
    record_store = getattr(request.app.state, "record_store", None)
    if record_store is not None and await record_store.ping():
        return "connected"
    return "disconnected"


def _bot_status(request: Request) -> str:
    return "running" if getattr(request.app.state, "bot", None) is not None else "disabled"


@router.get("/")
async def root(request: Request):
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "uptime": uptime_seconds(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": await _database_status(request),
    }


@router.get("/health")
async def health(request: Request):
    return {
        "status": "ok",
        "bot": _bot_status(request),
        "database": await _database_status(request),
    }
