"""
Technician Sync Service

한 번의 reconciliation pass:
1. ServiceTitan 기술자 명단 조회 (pass당 1회)
2. 계정별 매칭 (TechnicianReconciler)
3. 결과 요약 (매칭/검토 필요/미매칭 건수)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Sequence

from techsync.models.technician import LocalAccount, MatchResult, RemoteTechnician
from techsync.services.technician_directory import TechnicianDirectory
from techsync.services.technician_reconciler import TechnicianReconciler

logger = logging.getLogger(__name__)


@dataclass
class TechnicianSyncResult:
    """동기화 결과"""
    synced_at: str
    technicians_count: int = 0
    matches: list[MatchResult] = field(default_factory=list)

    @property
    def matched_count(self) -> int:
        return sum(1 for m in self.matches if m.is_matched)

    @property
    def review_count(self) -> int:
        return sum(1 for m in self.matches if m.needs_manual_review)

    @property
    def unmatched_count(self) -> int:
        return len(self.matches) - self.matched_count

    def pending_review(self) -> list[MatchResult]:
        return [m for m in self.matches if m.needs_manual_review]


class TechnicianSyncService:
    def __init__(
        self,
        reconciler: TechnicianReconciler,
        directory: Optional[TechnicianDirectory] = None,
    ) -> None:
        self.reconciler = reconciler
        self.directory = directory

    async def sync(self, accounts: Sequence[LocalAccount]) -> TechnicianSyncResult:
        """명단을 조회한 뒤 계정을 매칭"""
        if self.directory is None:
            raise RuntimeError("TechnicianSyncService has no technician directory configured")
        technicians = await self.directory.fetch_technicians()
        return self.reconcile(accounts, technicians)

    def reconcile(
        self,
        accounts: Sequence[LocalAccount],
        technicians: Sequence[RemoteTechnician],
    ) -> TechnicianSyncResult:
        """이미 확보한 명단으로 매칭 (네트워크 호출 없음)"""
        matches = self.reconciler.reconcile(accounts, technicians)
        result = TechnicianSyncResult(
            synced_at=datetime.now(timezone.utc).isoformat(),
            technicians_count=len(technicians),
            matches=matches,
        )
        logger.info(
            f"Technician sync: {len(matches)} accounts, {result.matched_count} matched, "
            f"{result.review_count} need review, {result.technicians_count} technicians"
        )
        return result
