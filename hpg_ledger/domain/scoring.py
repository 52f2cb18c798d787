"""Trust scoring engine - CIBIL-like score derived from loan history"""

from typing import Iterable

from hpg_ledger.domain.models import LoanRecord

BASE_SCORE = 750
MIN_SCORE = 300
MAX_SCORE = 900

OVERDUE_MONTH_WEIGHT = -5
PAID_MONTH_WEIGHT = 2


def loan_score_adjustment(loan: LoanRecord) -> int:
    """Points a single loan contributes: -5 per unpaid month, +2 per paid month"""
    overdue_months = max(0, loan.duration_months - loan.paid_months)
    return OVERDUE_MONTH_WEIGHT * overdue_months + PAID_MONTH_WEIGHT * loan.paid_months


def calculate_trust_score(loans: Iterable[LoanRecord]) -> int:
    """
    Score a customer's full loan history, settled loans included.

    Recomputed on every read and never persisted. With no loans the score is
    the 750 baseline; otherwise each loan's adjustment is added to it and the
    result is clamped to [300, 900].

    Example:
        One 12-month loan with 12 installments paid → 750 + 2×12 = 774
    """
    score = BASE_SCORE + sum(loan_score_adjustment(loan) for loan in loans)
    return max(MIN_SCORE, min(MAX_SCORE, score))


def score_band(score: int) -> str:
    """
    Map a trust score to its display band.

    - 750+:    good
    - 650-749: fair
    - <650:    poor
    """
    if score >= 750:
        return "good"
    elif score >= 650:
        return "fair"
    else:
        return "poor"
