"""GET /v1/fees/* - Tuition fee table and plan quotes"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Query

from tuition_gateway.api.v1.schemas import FeeRow, FeeScheduleResponse, InstallmentSchema, QuoteResponse
from tuition_gateway.config import settings
from tuition_gateway.domain.fees import APPLICATION_FEES, FEE_SCHEDULE, clamp_subject_count, fee_for, format_rands
from tuition_gateway.domain.installments import build_schedule, schedule_total
from tuition_gateway.domain.models import PaymentPlan

router = APIRouter()


@router.get("/fees/schedule", response_model=FeeScheduleResponse)
def get_fee_schedule():
    """Full fee table in cents"""
    return FeeScheduleResponse(
        currency=settings.currency,
        subjects=[
            FeeRow(
                subject_count=count,
                upfront_cents=fees[PaymentPlan.UPFRONT],
                six_months_cents=fees[PaymentPlan.SIX_MONTHS],
                ten_months_cents=fees[PaymentPlan.TEN_MONTHS],
            )
            for count, fees in sorted(FEE_SCHEDULE.items())
        ],
        application_fee_new_cents=APPLICATION_FEES["new"],
        application_fee_returning_cents=APPLICATION_FEES["returning"],
    )


@router.get("/fees/quote", response_model=QuoteResponse)
def get_quote(
    subject_count: int = Query(..., description="Number of selected subjects"),
    plan: PaymentPlan = Query(PaymentPlan.UPFRONT),
    start_date: Optional[date] = Query(None, description="Plan start; defaults to today"),
):
    """
    Price a plan for a subject count.

    Returns:
        Total fee, per-installment amount and month-by-month schedule
    """
    installments = build_schedule(subject_count, plan, start_date)
    total = fee_for(subject_count, plan)
    scheduled = schedule_total(installments)
    per_installment = installments[0].amount_cents

    return QuoteResponse(
        subject_count=subject_count,
        billed_subject_count=clamp_subject_count(subject_count),
        plan=plan,
        total_cents=total,
        installment_count=len(installments),
        installment_cents=per_installment,
        scheduled_total_cents=scheduled,
        overcollection_cents=scheduled - total,
        total_display=format_rands(total),
        installment_display=format_rands(per_installment),
        installments=[
            InstallmentSchema(month_label=inst.month_label, amount_cents=inst.amount_cents)
            for inst in installments
        ],
    )
