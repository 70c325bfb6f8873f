"""Payment reconciliation rules over an already-fetched application document"""

from datetime import date, datetime
from typing import Any, Dict, Optional
from tuition_gateway.domain.exceptions import MissingInstallmentMonthError
from tuition_gateway.domain.fees import to_major_units
from tuition_gateway.domain.installments import month_labels, normalize_month_key, parse_start_date
from tuition_gateway.domain.models import PaymentPlan
from tuition_gateway.utils.date_utils import epoch_millis, iso_timestamp


def monthly_reference(month_label: str, now: datetime) -> str:
    """Synthetic per-month reference, e.g. MONTHLY_March_2025_1741946520000"""
    return f"MONTHLY_{month_label.strip().replace(' ', '_')}_{epoch_millis(now)}"


def require_month(plan: PaymentPlan, month_label: Optional[str]) -> None:
    """Installment plans need a month label; upfront ignores it"""
    plan = PaymentPlan(plan)
    if plan is not PaymentPlan.UPFRONT and (not month_label or not month_label.strip()):
        raise MissingInstallmentMonthError(f"{plan.value} payment requires a month label")


def payment_update(
    plan: PaymentPlan,
    month_label: Optional[str],
    amount_cents: int,
    now: datetime,
    gateway_reference: Optional[str] = None,
    plan_start: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Partial document to merge for one successful payment.

    Upfront payments are a single lump sum recorded at top level.
    Installments are recorded under payments.<month_key>, tagged with the
    plan and the paymentStartDate they were paid against; the month is not
    checked against the active schedule.

    Raises:
        MissingInstallmentMonthError: installment plan without a month label
    """
    plan = PaymentPlan(plan)
    require_month(plan, month_label)
    if plan is PaymentPlan.UPFRONT:
        return {
            "paymentPlan": plan.value,
            "tuitionAmount": to_major_units(amount_cents),
            "tuitionPaid": True,
            "paymentStartDate": iso_timestamp(now),
        }

    entry = {
        "amount": to_major_units(amount_cents),
        "amountCents": amount_cents,
        "paid": True,
        "paidAt": iso_timestamp(now),
        "reference": monthly_reference(month_label, now),
        "plan": plan.value,
        "planStartDate": plan_start,
    }
    if gateway_reference:
        entry["gatewayReference"] = gateway_reference

    return {
        "paymentPlan": plan.value,
        "payments": {normalize_month_key(month_label): entry},
    }


def _in_active_plan(entry: Dict[str, Any], record: Dict[str, Any], plan: Optional[PaymentPlan]) -> bool:
    # Untagged entries predate plan tagging and cannot be scoped
    if plan is None or "plan" not in entry:
        return True
    return entry["plan"] == PaymentPlan(plan).value and entry.get("planStartDate") == record.get(
        "paymentStartDate"
    )


def is_month_paid(
    record: Optional[Dict[str, Any]],
    month_label: str,
    plan: Optional[PaymentPlan] = None,
) -> bool:
    """
    True when the month's payment entry exists and is marked paid.

    With plan given, only entries paid under that plan and the current
    paymentStartDate count; entries left over from an earlier selection do
    not.
    """
    if not record:
        return False
    month_key = normalize_month_key(month_label)

    payments = record.get("payments") or {}
    entry = payments.get(month_key)
    if entry is None:
        # Older documents stored the entry under a literal dotted field name
        entry = record.get(f"payments.{month_key}")
    if not isinstance(entry, dict):
        return False

    return entry.get("paid") is True and _in_active_plan(entry, record, plan)


def schedule_start(record: Dict[str, Any]) -> Optional[date]:
    return parse_start_date(record.get("paymentStartDate"))


def plan_complete(
    record: Optional[Dict[str, Any]],
    plan: PaymentPlan,
    today: Optional[date] = None,
) -> bool:
    """
    All-or-nothing completion check.

    Month labels are regenerated from the persisted paymentStartDate (or
    today when none is stored); every one must be paid under the active
    plan. Upfront plans are complete once tuitionPaid is set.
    """
    if not record:
        return False
    plan = PaymentPlan(plan)
    if plan is PaymentPlan.UPFRONT:
        return record.get("tuitionPaid") is True

    start = schedule_start(record) or today
    labels = month_labels(plan.installment_count, start)
    return all(is_month_paid(record, label, plan) for label in labels)
