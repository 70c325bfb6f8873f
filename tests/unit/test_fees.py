"""Unit tests for the tuition fee table"""

import pytest
from tuition_gateway.domain.fees import (
    FEE_SCHEDULE,
    application_fee_for,
    clamp_subject_count,
    fee_for,
    format_rands,
    monthly_amount,
)
from tuition_gateway.domain.models import PaymentPlan


@pytest.mark.parametrize(
    "subject_count, clamped",
    [(0, 1), (1, 1), (2, 2), (3, 3), (4, 4), (5, 4), (100, 4), (-3, 1)],
)
@pytest.mark.parametrize("plan", list(PaymentPlan))
def test_fee_for_clamps_subject_count(subject_count, clamped, plan):
    """Out-of-range counts silently use the nearest table row"""
    assert clamp_subject_count(subject_count) == clamped
    assert fee_for(subject_count, plan) == FEE_SCHEDULE[clamped][plan]


def test_fee_for_known_values():
    assert fee_for(1, PaymentPlan.UPFRONT) == 110000
    assert fee_for(2, PaymentPlan.SIX_MONTHS) == 230000
    assert fee_for(3, PaymentPlan.TEN_MONTHS) == 350000
    assert fee_for(4, PaymentPlan.UPFRONT) == 410000


def test_fee_for_accepts_wire_values():
    """Plan strings from the stored document work as well as the enum"""
    assert fee_for(2, "tenMonths") == 250000


def test_fee_schedule_is_non_decreasing():
    """More subjects never cost less, and longer plans never cost less"""
    for plan in PaymentPlan:
        amounts = [FEE_SCHEDULE[count][plan] for count in range(1, 5)]
        assert amounts == sorted(amounts)

    for fees in FEE_SCHEDULE.values():
        assert fees[PaymentPlan.UPFRONT] <= fees[PaymentPlan.SIX_MONTHS] <= fees[PaymentPlan.TEN_MONTHS]


def test_monthly_amount_uses_ceiling():
    assert monthly_amount(2, PaymentPlan.SIX_MONTHS) == 38334  # 230000 / 6 = 38333.33
    assert monthly_amount(1, PaymentPlan.TEN_MONTHS) == 15000  # divides evenly
    assert monthly_amount(1, PaymentPlan.UPFRONT) == 110000


def test_application_fee():
    assert application_fee_for() == 20000
    assert application_fee_for(returning=True) == 10000


def test_format_rands():
    assert format_rands(38334) == "R383.34"
    assert format_rands(110000) == "R1100.00"
    assert format_rands(5) == "R0.05"
