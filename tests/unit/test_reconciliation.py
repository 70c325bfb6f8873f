"""Unit tests for reconciliation rules on fetched documents"""

import pytest
from datetime import date, datetime, timezone
from tuition_gateway.domain.exceptions import MissingInstallmentMonthError
from tuition_gateway.domain.installments import month_labels, normalize_month_key
from tuition_gateway.domain.models import PaymentPlan
from tuition_gateway.domain.reconciliation import is_month_paid, payment_update, plan_complete
from tuition_gateway.infrastructure.database.repositories import deep_merge

NOW = datetime(2025, 3, 14, 10, 30, tzinfo=timezone.utc)


def paid_record(start: str, labels, plan="sixMonths") -> dict:
    """Document with the given months marked paid"""
    return {
        "paymentPlan": plan,
        "paymentStartDate": start,
        "payments": {normalize_month_key(label): {"paid": True, "amount": 383.34} for label in labels},
    }


def test_payment_update_upfront():
    """Upfront is a single lump sum at top level, no month key"""
    update = payment_update(PaymentPlan.UPFRONT, None, 110000, NOW)

    assert update == {
        "paymentPlan": "upfront",
        "tuitionAmount": 1100.0,
        "tuitionPaid": True,
        "paymentStartDate": "2025-03-14T10:30:00.000Z",
    }


def test_payment_update_installment_month():
    update = payment_update(PaymentPlan.SIX_MONTHS, "March 2025", 38334, NOW, gateway_reference="TUITION_X")
    entry = update["payments"]["march_2025"]

    assert update["paymentPlan"] == "sixMonths"
    assert entry["paid"] is True
    assert entry["amount"] == 383.34
    assert entry["amountCents"] == 38334
    assert entry["paidAt"] == "2025-03-14T10:30:00.000Z"
    assert entry["reference"].startswith("MONTHLY_March_2025_")
    assert entry["gatewayReference"] == "TUITION_X"


def test_payment_update_any_month_is_accepted():
    """Months are not checked against the active schedule"""
    update = payment_update(PaymentPlan.TEN_MONTHS, "December 1999", 15000, NOW)
    assert "december_1999" in update["payments"]


@pytest.mark.parametrize("month", [None, "", "   "])
def test_payment_update_installment_requires_month(month):
    with pytest.raises(MissingInstallmentMonthError):
        payment_update(PaymentPlan.SIX_MONTHS, month, 38334, NOW)


def test_is_month_paid_normalizes_label():
    record = deep_merge({}, payment_update(PaymentPlan.SIX_MONTHS, "March 2025", 38334, NOW))

    assert is_month_paid(record, "March 2025") is True
    assert is_month_paid(record, "march 2025 ") is True
    assert is_month_paid(record, "April 2025") is False


def test_is_month_paid_missing_data():
    assert is_month_paid({}, "March 2025") is False
    assert is_month_paid(None, "March 2025") is False
    assert is_month_paid({"payments": {"march_2025": {"paid": False}}}, "March 2025") is False
    assert is_month_paid({"payments": {"march_2025": {"paid": "true"}}}, "March 2025") is False


def test_is_month_paid_reads_legacy_dotted_field():
    record = {"payments.march_2025": {"paid": True}}
    assert is_month_paid(record, "March 2025") is True


def test_plan_complete_empty_or_missing_payments():
    assert plan_complete({"paymentStartDate": "2025-03-01"}, PaymentPlan.SIX_MONTHS) is False
    assert plan_complete({"paymentStartDate": "2025-03-01", "payments": {}}, PaymentPlan.SIX_MONTHS) is False
    assert plan_complete(None, PaymentPlan.SIX_MONTHS) is False


def test_plan_complete_requires_every_month():
    labels = month_labels(6, date(2025, 3, 1))
    assert plan_complete(paid_record("2025-03-01T08:00:00.000Z", labels), PaymentPlan.SIX_MONTHS) is True
    assert plan_complete(paid_record("2025-03-01T08:00:00.000Z", labels[:-1]), PaymentPlan.SIX_MONTHS) is False


def test_plan_complete_without_start_date_uses_today():
    today = date(2025, 7, 20)
    record = paid_record(None, month_labels(6, today))
    del record["paymentStartDate"]

    assert plan_complete(record, PaymentPlan.SIX_MONTHS, today=today) is True
    assert plan_complete(record, PaymentPlan.SIX_MONTHS, today=date(2025, 8, 1)) is False


def test_plan_complete_upfront_uses_tuition_paid():
    assert plan_complete({"tuitionPaid": True}, PaymentPlan.UPFRONT) is True
    assert plan_complete({"tuitionPaid": False}, PaymentPlan.UPFRONT) is False


def test_plan_switch_does_not_reuse_old_payments():
    """Partial six-month payments from March never satisfy a ten-month plan started in May"""
    record = paid_record("2025-03-01T08:00:00.000Z", ["March 2025", "April 2025"])
    assert plan_complete(record, PaymentPlan.SIX_MONTHS) is False

    switched = deep_merge(record, {"paymentPlan": "tenMonths", "paymentStartDate": "2025-05-02T09:00:00.000Z"})

    assert plan_complete(switched, PaymentPlan.TEN_MONTHS) is False
    assert "march_2025" in switched["payments"]  # orphaned, still stored


def test_same_month_switch_ignores_other_plan_entries():
    """Six paid ten-month installments never satisfy a six-month plan chosen the same month"""
    ten_start = "2025-03-14T10:30:00.000Z"
    record = {"paymentPlan": "tenMonths", "paymentStartDate": ten_start}
    for label in month_labels(6, date(2025, 3, 1)):
        record = deep_merge(
            record, payment_update(PaymentPlan.TEN_MONTHS, label, 25000, NOW, plan_start=ten_start)
        )
    assert is_month_paid(record, "March 2025", PaymentPlan.TEN_MONTHS) is True

    switched = deep_merge(record, {"paymentPlan": "sixMonths", "paymentStartDate": "2025-03-14T10:45:00.000Z"})

    assert is_month_paid(switched, "March 2025", PaymentPlan.SIX_MONTHS) is False
    assert plan_complete(switched, PaymentPlan.SIX_MONTHS) is False


def test_entries_from_an_earlier_start_of_the_same_plan_do_not_count():
    record = deep_merge(
        {"paymentPlan": "sixMonths", "paymentStartDate": "2025-03-01T08:00:00.000Z"},
        payment_update(PaymentPlan.SIX_MONTHS, "March 2025", 38334, NOW, plan_start="2025-02-01T08:00:00.000Z"),
    )

    assert is_month_paid(record, "March 2025") is True
    assert is_month_paid(record, "March 2025", PaymentPlan.SIX_MONTHS) is False


def test_untagged_entries_still_count_for_the_active_plan():
    record = paid_record("2025-03-01T08:00:00.000Z", month_labels(6, date(2025, 3, 1)))
    assert is_month_paid(record, "March 2025", PaymentPlan.SIX_MONTHS) is True


def test_plan_complete_with_unparseable_start_uses_today():
    today = date(2025, 7, 20)
    record = paid_record("not-a-date", month_labels(6, today))

    assert plan_complete(record, PaymentPlan.SIX_MONTHS, today=today) is True
