from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, List, Optional

from techsync.core.config import get_settings
from techsync.models.technician import RemoteTechnician
from techsync.services.servicetitan_client import ServiceTitanClient, ServiceTitanClientError

logger = logging.getLogger(__name__)


class TechnicianDirectory:
    """ServiceTitan 기술자 명단 조회. 실패는 빈 목록으로 흡수한다."""

    def __init__(self, client: ServiceTitanClient) -> None:
        self.client = client

    async def fetch_technicians(self, *, include_inactive: bool = False) -> List[RemoteTechnician]:
        try:
            raw_technicians = await self.client.get_all_technicians(
                active=None if include_inactive else True
            )
        except ServiceTitanClientError as exc:
            logger.warning("ServiceTitan technician fetch failed: %s", exc)
            return []

        technicians: List[RemoteTechnician] = []
        for raw in raw_technicians:
            try:
                technician = RemoteTechnician.from_api(raw)
            except (ValueError, TypeError, AttributeError) as exc:
                logger.warning("Skipping malformed technician record: %s", exc)
                continue
            if not include_inactive and not technician.is_active:
                continue
            technicians.append(technician)
        return technicians

    async def fetch_technician_jobs(self, technician_id: str) -> List[dict[str, Any]]:
        """기술자 작업 목록 + 작업별 상세 조회 (상세 조회 실패 건은 건너뜀)"""
        try:
            jobs = await self.client.get_technician_jobs(technician_id)
        except ServiceTitanClientError as exc:
            logger.warning("ServiceTitan job fetch failed for technician %s: %s", technician_id, exc)
            return []

        detailed_jobs: List[dict[str, Any]] = []
        for job in jobs:
            job_id = job.get("id") if isinstance(job, dict) else None
            if job_id is None:
                logger.warning("Skipping job without id for technician %s", technician_id)
                continue
            try:
                detail = await self.client.get_job(str(job_id))
            except ServiceTitanClientError as exc:
                logger.warning("ServiceTitan job detail fetch failed for job %s: %s", job_id, exc)
                continue
            if isinstance(detail, dict):
                detailed_jobs.append(detail)
        return detailed_jobs

    async def is_available(self) -> bool:
        return await self.client.health_check()


@lru_cache
def get_technician_directory() -> Optional[TechnicianDirectory]:
    settings = get_settings()
    if not settings.servicetitan_access_token:
        return None
    client = ServiceTitanClient(
        settings.servicetitan_access_token,
        environment=settings.servicetitan_environment,
        base_url=settings.servicetitan_base_url,
        app_key=settings.servicetitan_app_key,
        timeout=settings.servicetitan_timeout_seconds,
        page_size=settings.servicetitan_page_size,
    )
    return TechnicianDirectory(client)
