import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from techsync.api.router import get_api_router
from techsync.core.config import get_settings
from techsync.services.technician_directory import get_technician_directory


logger = logging.getLogger(__name__)
settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logging.getLogger("techsync").setLevel(settings.log_level)

# Silence noisy libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """종료 시 ServiceTitan 커넥션 풀 정리"""
    yield

    # 요청 중에 생성된 클라이언트만 정리
    if get_technician_directory.cache_info().currsize == 0:
        return
    directory = get_technician_directory()
    if directory is not None:
        await directory.client.close()
        logger.info("ServiceTitan client closed")


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.include_router(get_api_router())


@app.get("/")
def root() -> dict:
    return {"message": "Technician sync backend", "api_prefix": settings.api_prefix}
