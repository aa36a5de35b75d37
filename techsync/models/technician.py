from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class MatchMethod(str, Enum):
    EMAIL = "email"
    NAME = "name"
    NONE = "none"


@dataclass(frozen=True)
class LocalAccount:
    """내부 사용자 계정 (reconciler는 읽기만 함)"""
    id: str
    email: str
    full_name: Optional[str] = None


@dataclass(frozen=True)
class RemoteTechnician:
    """ServiceTitan 디렉터리에서 가져온 기술자 레코드"""
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    is_active: bool = True
    employee_id: Optional[str] = None

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "RemoteTechnician":
        """ServiceTitan technician payload → RemoteTechnician

        Raises:
            ValueError: id/name/email 누락
        """
        raw_id = raw.get("id")
        if raw_id is None or str(raw_id).strip() == "":
            raise ValueError("technician payload has no id")

        name = raw.get("name")
        email = raw.get("email")
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"technician {raw_id} has no name")
        if not isinstance(email, str) or not email.strip():
            raise ValueError(f"technician {raw_id} has no email")

        active = raw.get("active")
        if active is None:
            active = raw.get("isActive", True)

        phone = raw.get("phoneNumber") or raw.get("phone")
        employee_id = raw.get("employeeId")

        return cls(
            id=str(raw_id),
            name=name.strip(),
            email=email.strip(),
            phone=str(phone) if phone else None,
            is_active=bool(active),
            employee_id=str(employee_id) if employee_id is not None else None,
        )


@dataclass
class MatchResult:
    account: LocalAccount
    confidence: float
    match_method: MatchMethod
    reasons: List[str] = field(default_factory=list)
    needs_manual_review: bool = True
    technician_id: Optional[str] = None
    technician: Optional[RemoteTechnician] = None

    @property
    def technician_name(self) -> Optional[str]:
        return self.technician.name if self.technician else None

    @property
    def is_matched(self) -> bool:
        return self.match_method is not MatchMethod.NONE
