"""
ServiceTitan API Client

- httpx 커넥션 풀링
- Rate Limit 자동 처리 (Retry-After 파싱)
- hasMore 기반 페이지네이션
- 토큰은 외부에서 주입 (갱신/저장은 하지 않음)
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any, List, Optional

import httpx

logger = logging.getLogger(__name__)

ENVIRONMENT_BASE_URLS = {
    "integration": "https://integration-api.servicetitan.io",
    "production": "https://api.servicetitan.io",
}

RATE_LIMIT_FALLBACK_SECONDS = 10
RATE_LIMIT_MIN_SECONDS = 1
RATE_LIMIT_MAX_SECONDS = 120

DEFAULT_JOB_WINDOW_DAYS = 7


class ServiceTitanClientError(RuntimeError):
    """ServiceTitan API 일반 에러"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ServiceTitanAuthError(ServiceTitanClientError):
    """인증 실패 (토큰 없음 / 401)"""


class RateLimitError(ServiceTitanClientError):
    """Rate Limit 에러 (429)"""
    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class ServiceTitanClient:
    """
    ServiceTitan job-management API 클라이언트

    설정은 생성 시점에 모두 주입한다 (전역 싱글톤/로컬 저장소 사용 안 함).
    """

    def __init__(
        self,
        access_token: str,
        *,
        environment: str = "integration",
        base_url: Optional[str] = None,
        app_key: Optional[str] = None,
        timeout: float = 30.0,
        page_size: int = 50,
        page_delay_ms: int = 100,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not access_token:
            raise ServiceTitanAuthError("ServiceTitan access token required")

        if base_url:
            self.base_url = base_url.rstrip("/")
        else:
            try:
                self.base_url = ENVIRONMENT_BASE_URLS[environment]
            except KeyError:
                raise ServiceTitanClientError(f"Unknown ServiceTitan environment: {environment}") from None

        self.access_token = access_token
        self.app_key = app_key
        self.timeout = timeout
        self.page_size = page_size
        self.page_delay_ms = page_delay_ms
        self._transport = transport

        self._rate_limit_reset_at: Optional[float] = None
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """커넥션 풀 클라이언트 반환 (lazy init)"""
        if self._client is None or self._client.is_closed:
            headers = {
                "Authorization": f"Bearer {self.access_token}",
                "Content-Type": "application/json",
            }
            if self.app_key:
                headers["ST-App-Key"] = self.app_key
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=headers,
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    # =========================================================================
    # 기술자 API
    # =========================================================================

    async def get_technicians(
        self,
        *,
        page: int = 1,
        page_size: Optional[int] = None,
        active: Optional[bool] = True,
    ) -> dict[str, Any]:
        """기술자 목록 조회 (단일 페이지, {data, hasMore, totalCount})"""
        params: dict[str, Any] = {
            "page": page,
            "pageSize": page_size or self.page_size,
        }
        if active is not None:
            params["active"] = "true" if active else "false"
        return await self._request("GET", "/v2/technicians", params=params)

    async def get_all_technicians(self, *, active: Optional[bool] = True) -> List[dict[str, Any]]:
        """전체 기술자 조회 (자동 페이지네이션)"""
        all_technicians: List[dict[str, Any]] = []
        page = 1

        while True:
            response = await self.get_technicians(page=page, active=active)
            technicians = self._page_data(response, "/v2/technicians")
            all_technicians.extend(technicians)
            logger.debug(f"Fetched technician page {page}: {len(technicians)} (total: {len(all_technicians)})")

            if not technicians or not response.get("hasMore"):
                break

            page += 1
            await self._page_delay()

        logger.info(f"Fetched {len(all_technicians)} technicians total")
        return all_technicians

    # =========================================================================
    # 작업(Job) API
    # =========================================================================

    async def get_technician_jobs(
        self,
        technician_id: str,
        *,
        starts_on_or_after: Optional[datetime] = None,
        starts_before: Optional[datetime] = None,
    ) -> List[dict[str, Any]]:
        """
        기술자에게 배정된 작업 조회

        기본 조회 구간: 현재 시각 ~ 7일 후
        """
        start = starts_on_or_after or datetime.now(timezone.utc)
        end = starts_before or start + timedelta(days=DEFAULT_JOB_WINDOW_DAYS)
        params = {
            "technicianIds": technician_id,
            "scheduledStart": start.isoformat(),
            "scheduledEnd": end.isoformat(),
        }
        response = await self._request("GET", "/v2/jobs", params=params)
        return self._page_data(response, "/v2/jobs")

    async def get_job(self, job_id: str) -> Optional[dict[str, Any]]:
        """단일 작업 조회"""
        try:
            return await self._request("GET", f"/v2/jobs/{job_id}")
        except ServiceTitanClientError as e:
            if e.status_code == 404:
                return None
            raise

    # =========================================================================
    # Health Check
    # =========================================================================

    async def health_check(self) -> bool:
        try:
            await self.get_technicians(page=1, page_size=1)
            return True
        except Exception as e:
            logger.error(f"ServiceTitan health check failed: {e}")
            return False

    # =========================================================================
    # Internal Methods
    # =========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        HTTP 요청 실행

        - 401 → ServiceTitanAuthError (토큰 갱신은 호출자 책임)
        - 429 → Retry-After 대기 후 재시도 (최대 3회)
        """
        url = f"{self.base_url}{path}"
        max_attempts = 3

        for attempt in range(max_attempts):
            await self._wait_for_rate_limit()

            try:
                client = await self._get_client()
                response = await client.request(method, url, params=params, json=json)

                if response.status_code == 401:
                    raise ServiceTitanAuthError(
                        f"ServiceTitan API {method} {path} unauthorized", status_code=401
                    )

                if response.status_code == 429:
                    retry_after = self._parse_retry_after(response.headers.get("Retry-After"))
                    self._schedule_rate_limit_wait(retry_after)
                    logger.warning(f"Rate limit hit, waiting {retry_after or RATE_LIMIT_FALLBACK_SECONDS}s...")
                    raise RateLimitError("Rate limit exceeded", retry_after)

                if response.status_code >= 400:
                    raise ServiceTitanClientError(
                        f"ServiceTitan API {method} {path} failed: {response.status_code} {response.text}",
                        status_code=response.status_code,
                    )

                try:
                    return response.json()
                except ValueError as e:
                    raise ServiceTitanClientError(
                        f"ServiceTitan API {method} {path} returned invalid JSON: {e}",
                        status_code=response.status_code,
                    ) from e

            except RateLimitError:
                if attempt < max_attempts - 1:
                    continue
                raise

            except httpx.TimeoutException as e:
                logger.warning(f"Request timeout (attempt {attempt + 1}/{max_attempts}): {e}")
                if attempt < max_attempts - 1:
                    await asyncio.sleep(1.0 * (attempt + 1))
                    continue
                raise ServiceTitanClientError(f"Request timeout: {e}") from e

            except httpx.HTTPError as e:
                logger.error(f"HTTP error: {e}")
                raise ServiceTitanClientError(f"HTTP error: {e}") from e

        raise ServiceTitanClientError(f"Max retries exceeded for {method} {path}")

    def _page_data(self, response: Any, path: str) -> List[dict[str, Any]]:
        """페이지 응답({data, hasMore, totalCount})에서 data 추출"""
        if not isinstance(response, dict):
            raise ServiceTitanClientError(
                f"ServiceTitan API {path} returned {type(response).__name__}, expected a page object"
            )
        data = response.get("data") or []
        if not isinstance(data, list):
            raise ServiceTitanClientError(f"ServiceTitan API {path} returned non-list data")
        return data

    async def _wait_for_rate_limit(self) -> None:
        if self._rate_limit_reset_at is None:
            return

        remaining = self._rate_limit_reset_at - time.time()
        if remaining <= 0:
            self._rate_limit_reset_at = None
            return

        logger.warning(f"Waiting {remaining:.1f}s for rate limit window...")
        await asyncio.sleep(remaining)
        self._rate_limit_reset_at = None

    def _schedule_rate_limit_wait(self, retry_after: Optional[int]) -> None:
        seconds = retry_after or RATE_LIMIT_FALLBACK_SECONDS
        seconds = max(RATE_LIMIT_MIN_SECONDS, min(seconds, RATE_LIMIT_MAX_SECONDS))
        target = time.time() + seconds

        if self._rate_limit_reset_at is None or target > self._rate_limit_reset_at:
            self._rate_limit_reset_at = target

    def _parse_retry_after(self, header_value: Optional[str]) -> Optional[int]:
        """Retry-After 헤더 파싱 (초 또는 HTTP 날짜)"""
        if not header_value:
            return None

        try:
            return int(header_value)
        except ValueError:
            pass

        try:
            dt = parsedate_to_datetime(header_value)
        except (TypeError, ValueError):
            return None
        seconds = int(dt.timestamp() - time.time())
        return seconds if seconds > 0 else None

    async def _page_delay(self) -> None:
        if self.page_delay_ms > 0:
            await asyncio.sleep(self.page_delay_ms / 1000.0)
