"""Tuition fee table - all amounts are integer cents (ZAR)"""

from typing import Dict
from tuition_gateway.domain.models import PaymentPlan

MIN_SUBJECTS = 1
MAX_SUBJECTS = 4

# subject count -> plan -> total fee in cents
FEE_SCHEDULE: Dict[int, Dict[PaymentPlan, int]] = {
    1: {
        PaymentPlan.UPFRONT: 110_000,  # R1100.00
        PaymentPlan.SIX_MONTHS: 130_000,  # R1300.00
        PaymentPlan.TEN_MONTHS: 150_000,  # R1500.00
    },
    2: {
        PaymentPlan.UPFRONT: 210_000,
        PaymentPlan.SIX_MONTHS: 230_000,
        PaymentPlan.TEN_MONTHS: 250_000,
    },
    3: {
        PaymentPlan.UPFRONT: 310_000,
        PaymentPlan.SIX_MONTHS: 330_000,
        PaymentPlan.TEN_MONTHS: 350_000,
    },
    4: {
        PaymentPlan.UPFRONT: 410_000,
        PaymentPlan.SIX_MONTHS: 430_000,
        PaymentPlan.TEN_MONTHS: 450_000,
    },
}

APPLICATION_FEES = {
    "new": 20_000,  # R200.00
    "returning": 10_000,  # R100.00
}


def clamp_subject_count(subject_count: int) -> int:
    """Clamp to the table range; out-of-range counts are not an error"""
    return min(max(subject_count, MIN_SUBJECTS), MAX_SUBJECTS)


def fee_for(subject_count: int, plan: PaymentPlan) -> int:
    """
    Total tuition for a subject count under a payment plan.

    More than 4 subjects pays the 4-subject fee; 0 or fewer pays the
    1-subject fee.
    """
    return FEE_SCHEDULE[clamp_subject_count(subject_count)][PaymentPlan(plan)]


def monthly_amount(subject_count: int, plan: PaymentPlan) -> int:
    """Per-installment amount: ceiling of total / installment count"""
    plan = PaymentPlan(plan)
    total = fee_for(subject_count, plan)
    return -(-total // plan.installment_count)


def application_fee_for(returning: bool = False) -> int:
    return APPLICATION_FEES["returning" if returning else "new"]


def format_rands(amount_cents: int) -> str:
    """Display-only formatting, e.g. 38334 -> 'R383.34'"""
    return f"R{amount_cents // 100}.{amount_cents % 100:02d}"


def to_major_units(amount_cents: int) -> float:
    """Rands as stored in the document for display (tuitionAmount, payments.*.amount)"""
    return amount_cents / 100
