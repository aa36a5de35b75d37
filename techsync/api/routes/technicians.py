"""
Technician Routes

ServiceTitan 기술자 명단 조회 및 내부 계정 매칭 엔드포인트.
needsManualReview=true 항목은 검토 화면에서 사람이 확인해야 한다.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from techsync.models.reconcile import (
    MatchResultPayload,
    ReconcileRequest,
    ReconcileResponse,
    ReconcileSummary,
    TechnicianPayload,
)
from techsync.services.technician_directory import TechnicianDirectory, get_technician_directory
from techsync.services.technician_reconciler import TechnicianReconciler, get_technician_reconciler
from techsync.services.technician_sync_service import TechnicianSyncService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/technicians", tags=["technicians"])


def _require_directory(directory: Optional[TechnicianDirectory]) -> TechnicianDirectory:
    if directory is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="ServiceTitan integration is not configured",
        )
    return directory


@router.post("/reconcile", response_model=ReconcileResponse)
async def reconcile_accounts(
    payload: ReconcileRequest,
    reconciler: TechnicianReconciler = Depends(get_technician_reconciler),
    directory: Optional[TechnicianDirectory] = Depends(get_technician_directory),
) -> ReconcileResponse:
    """
    내부 계정 ↔ ServiceTitan 기술자 매칭

    - technicians가 주어지면 해당 명단으로만 매칭 (네트워크 호출 없음)
    - 생략하면 ServiceTitan에서 명단을 1회 조회
    """
    accounts = [account.to_domain() for account in payload.accounts]

    if payload.technicians is not None:
        service = TechnicianSyncService(reconciler)
        result = service.reconcile(accounts, [t.to_domain() for t in payload.technicians])
    else:
        service = TechnicianSyncService(reconciler, _require_directory(directory))
        result = await service.sync(accounts)

    return ReconcileResponse(
        matches=[MatchResultPayload.from_domain(match) for match in result.matches],
        summary=ReconcileSummary(
            total=len(result.matches),
            matched=result.matched_count,
            needs_review=result.review_count,
            unmatched=result.unmatched_count,
            technician_count=result.technicians_count,
            synced_at=result.synced_at,
        ),
    )


@router.get("", response_model=List[TechnicianPayload])
async def list_technicians(
    include_inactive: bool = False,
    directory: Optional[TechnicianDirectory] = Depends(get_technician_directory),
) -> List[TechnicianPayload]:
    technicians = await _require_directory(directory).fetch_technicians(include_inactive=include_inactive)
    return [TechnicianPayload.from_domain(t) for t in technicians]


@router.get("/{technician_id}/jobs")
async def list_technician_jobs(
    technician_id: str,
    directory: Optional[TechnicianDirectory] = Depends(get_technician_directory),
) -> dict[str, Any]:
    jobs = await _require_directory(directory).fetch_technician_jobs(technician_id)
    return {"technicianId": technician_id, "jobs": jobs}
