"""
Technician reconciliation 요청/응답 모델

검토 화면(Review UI)에서 사용하는 API 모델 정의
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from techsync.models.technician import LocalAccount, MatchMethod, MatchResult, RemoteTechnician


# =============================================================================
# Request Models
# =============================================================================

class LocalAccountPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    email: str = Field(..., min_length=1)
    full_name: Optional[str] = Field(default=None, alias="fullName")

    def to_domain(self) -> LocalAccount:
        return LocalAccount(id=self.id, email=self.email, full_name=self.full_name)


class TechnicianPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    email: str
    phone: Optional[str] = None
    is_active: bool = Field(default=True, alias="isActive")
    employee_id: Optional[str] = Field(default=None, alias="employeeId")

    def to_domain(self) -> RemoteTechnician:
        return RemoteTechnician(
            id=self.id,
            name=self.name,
            email=self.email,
            phone=self.phone,
            is_active=self.is_active,
            employee_id=self.employee_id,
        )

    @classmethod
    def from_domain(cls, technician: RemoteTechnician) -> "TechnicianPayload":
        return cls(
            id=technician.id,
            name=technician.name,
            email=technician.email,
            phone=technician.phone,
            is_active=technician.is_active,
            employee_id=technician.employee_id,
        )


class ReconcileRequest(BaseModel):
    """계정 매칭 요청 (technicians 생략 시 ServiceTitan에서 조회)"""
    accounts: List[LocalAccountPayload] = Field(default_factory=list)
    technicians: Optional[List[TechnicianPayload]] = None


# =============================================================================
# Response Models
# =============================================================================

class MatchResultPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    account: LocalAccountPayload
    technician_id: Optional[str] = Field(default=None, alias="technicianId")
    technician: Optional[TechnicianPayload] = None
    technician_name: Optional[str] = Field(default=None, alias="technicianName")
    confidence: float
    match_method: MatchMethod = Field(..., alias="matchMethod")
    reasons: List[str]
    needs_manual_review: bool = Field(..., alias="needsManualReview")

    @classmethod
    def from_domain(cls, result: MatchResult) -> "MatchResultPayload":
        account = result.account
        return cls(
            account=LocalAccountPayload(id=account.id, email=account.email, full_name=account.full_name),
            technician_id=result.technician_id,
            technician=TechnicianPayload.from_domain(result.technician) if result.technician else None,
            technician_name=result.technician_name,
            confidence=result.confidence,
            match_method=result.match_method,
            reasons=list(result.reasons),
            needs_manual_review=result.needs_manual_review,
        )


class ReconcileSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    matched: int
    needs_review: int = Field(..., alias="needsReview")
    unmatched: int
    technician_count: int = Field(..., alias="technicianCount")
    synced_at: str = Field(..., alias="syncedAt")


class ReconcileResponse(BaseModel):
    matches: List[MatchResultPayload]
    summary: ReconcileSummary
