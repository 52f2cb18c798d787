"""Unit tests for trust scoring"""

import copy
from datetime import date
from hpg_ledger.domain.models import LoanRecord
from hpg_ledger.domain.scoring import calculate_trust_score, loan_score_adjustment, score_band


def loan(duration: int, paid: int, total: int = 112000, paid_amount: int = 0) -> LoanRecord:
    return LoanRecord(
        id=f"L{duration}-{paid}",
        name="Test Loan",
        principal=100000,
        annual_rate_percent=12.0,
        duration_months=duration,
        total_repayment=total,
        disbursal_date=date(2026, 1, 1),
        paid_months=paid,
        paid_amount=paid_amount,
    )


def test_no_loans_scores_baseline():
    assert calculate_trust_score([]) == 750


def test_fully_paid_loan_on_schedule():
    """12 of 12 paid → -5×0 + 2×12 = +24"""
    assert calculate_trust_score([loan(12, 12, paid_amount=112000)]) == 774


def test_fresh_loan_counts_unpaid_months():
    """0 of 12 paid → -5×12 = -60"""
    assert calculate_trust_score([loan(12, 0)]) == 690


def test_adjustments_sum_across_loans():
    loans = [loan(12, 12, paid_amount=112000), loan(6, 2)]
    # +24 and (-5×4 + 2×2 = -16)
    assert loan_score_adjustment(loans[1]) == -16
    assert calculate_trust_score(loans) == 758


def test_score_clamped_to_range():
    assert calculate_trust_score([loan(60, 0)] * 3) == 300
    assert calculate_trust_score([loan(120, 120)]) == 900


def test_score_is_pure():
    loans = [loan(12, 5), loan(24, 10)]
    before = copy.deepcopy(loans)

    first = calculate_trust_score(loans)
    second = calculate_trust_score(loans)

    assert first == second
    assert loans == before
    assert calculate_trust_score(reversed(loans)) == first


def test_score_band_thresholds():
    assert score_band(900) == "good"
    assert score_band(750) == "good"
    assert score_band(749) == "fair"
    assert score_band(650) == "fair"
    assert score_band(649) == "poor"
    assert score_band(300) == "poor"
