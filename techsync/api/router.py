from fastapi import APIRouter

from techsync.api.routes import health, technicians
from techsync.core.config import get_settings


def get_api_router() -> APIRouter:
    settings = get_settings()
    router = APIRouter(prefix=settings.api_prefix)
    router.include_router(health.router)
    router.include_router(technicians.router)  # ServiceTitan technician reconciliation
    return router
