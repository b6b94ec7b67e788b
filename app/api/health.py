import time
from datetime import datetime, timezone

from fastapi import APIRouter

from app.core.config import config

router = APIRouter()

_STARTED_AT = time.monotonic()


@router.get("/")
async def root() -> dict[str, str]:
    return {"message": f"{config.title} 运行中", "version": config.version, "status": "online"}


@router.get("/health")
async def health() -> dict[str, object]:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
    }
