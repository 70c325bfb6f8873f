"""Installment schedule generation for tuition payment plans"""

import logging
import re
from datetime import date, datetime, timezone
from typing import List, Optional
from tuition_gateway.domain.fees import monthly_amount
from tuition_gateway.domain.models import Installment, PaymentPlan
from tuition_gateway.utils.date_utils import generate_month_range, month_label

logger = logging.getLogger(__name__)


def installment_count(plan: PaymentPlan) -> int:
    return PaymentPlan(plan).installment_count


def month_labels(count: int, start_date: Optional[date] = None) -> List[str]:
    """
    Labels for `count` consecutive calendar months starting at start_date's month.

    Only (year, month) of start_date matters, so any day in the same month
    yields the same labels. Defaults to today when no start date is known.
    """
    if start_date is None:
        start_date = date.today()
    return [month_label(year, month) for year, month in generate_month_range(start_date, count)]


def normalize_month_key(label: str) -> str:
    """'March 2025' -> 'march_2025' (storage key under payments)"""
    return re.sub(r"\s+", "_", label.strip().lower())


def parse_start_date(value: str | date | None) -> Optional[date]:
    """
    Persisted paymentStartDate -> date.

    Accepts ISO-8601 dates and datetimes, including the trailing 'Z' the
    browser's toISOString() writes. Aware datetimes are read in UTC.
    Unparseable values are treated as absent.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"Ignoring unparseable paymentStartDate: {value!r}")
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date()


def build_schedule(
    subject_count: int,
    plan: PaymentPlan,
    start_date: Optional[date] = None,
) -> List[Installment]:
    """
    Generate the tuition installment schedule for a plan.

    Requirements:
    - 1 / 6 / 10 installments for upfront / sixMonths / tenMonths
    - Every installment is ceil(total_fee / count); there is no final
      adjustment, so the schedule collects up to count-1 cents more than
      the nominal fee
    - One installment per calendar month starting at start_date's month

    Args:
        subject_count: Number of selected subjects (clamped to 1-4)
        plan: Payment plan
        start_date: Plan start (default: today)

    Returns:
        List of Installment objects with month labels and amounts

    Example:
        2 subjects, sixMonths: R2300.00 / 6
        230000 cents / 6 = 38333.33 -> 38334 each, 230004 in total
    """
    plan = PaymentPlan(plan)
    amount = monthly_amount(subject_count, plan)
    labels = month_labels(plan.installment_count, start_date)
    return [Installment(month_label=label, amount_cents=amount) for label in labels]


def schedule_total(installments: List[Installment]) -> int:
    return sum(inst.amount_cents for inst in installments)
