from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SERVICETITAN_ENVIRONMENTS = ("integration", "production")


class Settings(BaseSettings):
    """FastAPI 설정과 ServiceTitan 연동 환경 변수를 관리"""

    api_prefix: str = "/api"
    app_name: str = "Technician Sync Backend"
    log_level: str = "INFO"

    # ServiceTitan (job-management directory)
    servicetitan_environment: str = "integration"
    servicetitan_base_url: Optional[str] = None  # 환경별 기본 URL 대신 사용
    servicetitan_access_token: Optional[str] = None
    servicetitan_app_key: Optional[str] = None
    servicetitan_timeout_seconds: float = Field(default=30.0, gt=0)
    servicetitan_page_size: int = Field(default=50, ge=1, le=500)

    model_config = SettingsConfigDict(
        env_prefix="",  # 프리픽스 없음 - SERVICETITAN_* 직접 사용
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
    )

    @field_validator("servicetitan_environment", mode="before")
    @classmethod
    def normalize_environment(cls, value):
        if value is None:
            return "integration"
        normalized = str(value).strip().lower()
        if normalized not in SERVICETITAN_ENVIRONMENTS:
            raise ValueError(
                f"servicetitan_environment must be one of {', '.join(SERVICETITAN_ENVIRONMENTS)}"
            )
        return normalized


@lru_cache
def get_settings() -> Settings:
    return Settings()
