"""Application intake and dashboard projection"""

import logging
from datetime import date
from typing import Any, Dict, List
from tuition_gateway.domain.exceptions import ApplicationValidationError
from tuition_gateway.domain.fees import clamp_subject_count, fee_for, format_rands
from tuition_gateway.domain.installments import build_schedule, normalize_month_key, schedule_total
from tuition_gateway.domain.models import ApplicationStatus, PaymentPlan, PaymentStatus
from tuition_gateway.domain.reconciliation import is_month_paid, plan_complete, schedule_start
from tuition_gateway.domain.validation import validate_application_form
from tuition_gateway.infrastructure.database.repositories import ApplicationRepository
from tuition_gateway.infrastructure.retry import retry_operation
from tuition_gateway.utils.date_utils import iso_timestamp, utc_now

logger = logging.getLogger(__name__)


async def submit_application(repo: ApplicationRepository, application_id: str, form: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate and save an application as submitted.

    Validation failures are raised before anything is written and are
    never retried.
    """
    errors = validate_application_form(form)
    if errors:
        raise ApplicationValidationError(errors)

    now = iso_timestamp(utc_now())
    document = dict(form)
    document.update(
        {
            "userId": application_id,
            "selectedSubjects": sorted(set(form["selectedSubjects"])),
            "subjectCount": len(set(form["selectedSubjects"])),
            "status": ApplicationStatus.SUBMITTED.value,
            "paymentStatus": PaymentStatus.PENDING.value,
            "submittedAt": now,
            "createdAt": now,
            "updatedAt": now,
        }
    )
    await retry_operation(lambda: repo.set(application_id, document))
    logger.info("Application submitted", extra={"application_id": application_id})
    document["id"] = application_id
    return document


def subject_count_of(record: Dict[str, Any]) -> int:
    return len(record.get("selectedSubjects") or [])


def dashboard(record: Dict[str, Any], today: date | None = None) -> Dict[str, Any]:
    """Status, chosen plan and per-month payment state for one application"""
    today = today or date.today()
    subject_count = subject_count_of(record)
    view: Dict[str, Any] = {
        "application_id": record["id"],
        "status": record.get("status", ApplicationStatus.SUBMITTED.value),
        "payment_status": record.get("paymentStatus", PaymentStatus.PENDING.value),
        "subject_count": subject_count,
        "payment_plan": record.get("paymentPlan"),
        "payment_start_date": record.get("paymentStartDate"),
        "can_pay_tuition": record.get("status") == ApplicationStatus.APPROVED.value,
        "schedule_provisional": False,
        "schedule": [],
        "plan_complete": False,
    }
    if not record.get("paymentPlan") or subject_count == 0:
        return view

    plan = PaymentPlan(record["paymentPlan"])
    start = schedule_start(record)
    installments = build_schedule(subject_count, plan, start or today)
    schedule: List[Dict[str, Any]] = [
        {
            "month_label": inst.month_label,
            "month_key": normalize_month_key(inst.month_label),
            "amount_cents": inst.amount_cents,
            "display_amount": format_rands(inst.amount_cents),
            "paid": (
                record.get("tuitionPaid") is True
                if plan is PaymentPlan.UPFRONT
                else is_month_paid(record, inst.month_label, plan)
            ),
        }
        for inst in installments
    ]
    view.update(
        {
            "schedule_provisional": start is None,
            "schedule": schedule,
            "plan_complete": plan_complete(record, plan, today=today),
            "total_cents": fee_for(subject_count, plan),
            "scheduled_total_cents": schedule_total(installments),
            "billed_subject_count": clamp_subject_count(subject_count),
        }
    )
    return view
