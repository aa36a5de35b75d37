"""
Technician Reconciler

내부 계정(LocalAccount)과 ServiceTitan 기술자(RemoteTechnician)를 1:1로 매칭한다.

- 이메일 일치 (가중치 0.8)
- 이름 일치 0.6 / 이름 포함 0.4
- 0.5 초과일 때만 매칭 인정, 0.85 미만은 수동 검토 필요

계정별 greedy 매칭이므로 서로 다른 계정이 같은 기술자에 매칭될 수 있다.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional, Sequence

from techsync.models.technician import LocalAccount, MatchMethod, MatchResult, RemoteTechnician

logger = logging.getLogger(__name__)

EMAIL_MATCH_WEIGHT = 0.8
NAME_EXACT_WEIGHT = 0.6
NAME_PARTIAL_WEIGHT = 0.4
MAX_SCORE = 1.0

MIN_MATCH_SCORE = 0.5  # strictly greater than
MANUAL_REVIEW_THRESHOLD = 0.85

REASON_EMAIL = "Email exact match"
REASON_NAME = "Name similarity match"
REASON_NO_MATCH = "No matching technician found in the remote directory"


def _emails_equal(account: LocalAccount, technician: RemoteTechnician) -> bool:
    return technician.email.lower() == account.email.lower()


def score_match(account: LocalAccount, technician: RemoteTechnician) -> float:
    """계정/기술자 쌍의 매칭 점수 (0.0 ~ 1.0)"""
    score = 0.0

    if _emails_equal(account, technician):
        score += EMAIL_MATCH_WEIGHT

    if account.full_name is not None:
        tech_name = technician.name.lower()
        user_name = account.full_name.lower()
        if tech_name == user_name:
            score += NAME_EXACT_WEIGHT
        elif user_name in tech_name or tech_name in user_name:
            score += NAME_PARTIAL_WEIGHT

    # LocalAccount에 전화번호가 없으므로 phone 비교는 하지 않음

    return min(score, MAX_SCORE)


def find_best_match(
    account: LocalAccount,
    technicians: Sequence[RemoteTechnician],
) -> tuple[Optional[RemoteTechnician], float]:
    """최고 점수 기술자 반환. 동점이면 먼저 나온 기술자가 이긴다."""
    best: Optional[RemoteTechnician] = None
    best_score = 0.0

    for technician in technicians:
        score = score_match(account, technician)
        if score > best_score:
            best_score = score
            best = technician

    if best is None or best_score <= MIN_MATCH_SCORE:
        return None, 0.0
    return best, best_score


def _no_match(account: LocalAccount) -> MatchResult:
    return MatchResult(
        account=account,
        confidence=0.0,
        match_method=MatchMethod.NONE,
        reasons=[REASON_NO_MATCH],
        needs_manual_review=True,
    )


def _build_result(account: LocalAccount, technician: RemoteTechnician, confidence: float) -> MatchResult:
    # 선택 후 이메일 일치 여부를 다시 계산해서 method를 결정
    email_match = _emails_equal(account, technician)
    return MatchResult(
        account=account,
        technician_id=technician.id,
        technician=technician,
        confidence=confidence,
        match_method=MatchMethod.EMAIL if email_match else MatchMethod.NAME,
        reasons=[REASON_EMAIL] if email_match else [REASON_NAME],
        needs_manual_review=confidence < MANUAL_REVIEW_THRESHOLD,
    )


def reconcile_technicians(
    accounts: Sequence[LocalAccount],
    technicians: Sequence[RemoteTechnician],
) -> list[MatchResult]:
    """계정 순서대로 MatchResult를 하나씩 반환 (네트워크/부작용 없음)"""
    results: list[MatchResult] = []
    for account in accounts:
        technician, confidence = find_best_match(account, technicians)
        if technician is None:
            result = _no_match(account)
        else:
            result = _build_result(account, technician, confidence)
        logger.debug(
            "Account %s -> %s (method=%s, confidence=%.2f)",
            account.id,
            result.technician_id,
            result.match_method.value,
            result.confidence,
        )
        results.append(result)
    return results


class TechnicianReconciler:
    """API/서비스 계층에서 주입받아 사용하는 reconciler 인터페이스"""

    def reconcile(
        self,
        accounts: Sequence[LocalAccount],
        technicians: Sequence[RemoteTechnician],
    ) -> list[MatchResult]:
        results = reconcile_technicians(accounts, technicians)
        review = sum(1 for r in results if r.needs_manual_review)
        logger.debug(
            "Reconciled %d accounts against %d technicians (%d need review)",
            len(results),
            len(technicians),
            review,
        )
        return results


@lru_cache
def get_technician_reconciler() -> TechnicianReconciler:
    return TechnicianReconciler()
