from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends

from techsync.services.technician_directory import TechnicianDirectory, get_technician_directory

router = APIRouter(tags=["health"])


@router.get("/health")
async def read_health(
    directory: Optional[TechnicianDirectory] = Depends(get_technician_directory),
) -> dict:
    """서비스 상태 (ServiceTitan 설정 시 API 연결 여부 포함)"""
    servicetitan = "not_configured"
    if directory is not None:
        servicetitan = "ok" if await directory.is_available() else "unavailable"
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "servicetitan": servicetitan,
    }
