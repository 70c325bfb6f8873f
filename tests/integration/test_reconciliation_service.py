"""Integration tests for payment reconciliation against the document store"""

import pytest
from datetime import date
from tuition_gateway.domain.exceptions import ApplicationNotFoundError, MissingInstallmentMonthError
from tuition_gateway.domain.installments import month_labels
from tuition_gateway.domain.models import ApplicationStatus, PaymentPlan
from tuition_gateway.infrastructure.database.repositories import ApplicationRepository
from tuition_gateway.services.reconciliation import ReconciliationService


async def test_upfront_payment_completes_immediately(repo: ApplicationRepository, approved_application: str, clock_at):
    reconciler = ReconciliationService(repo, clock=clock_at(2025, 3))

    outcome = await reconciler.record_payment(approved_application, PaymentPlan.UPFRONT, None, 210000)

    document = repo.get(approved_application)
    assert outcome.plan_complete is True
    assert outcome.month_key is None
    assert document["tuitionPaid"] is True
    assert document["tuitionAmount"] == 2100.0
    assert document["paymentStatus"] == "fully_paid"
    assert await reconciler.is_plan_complete(approved_application, PaymentPlan.UPFRONT) is True


async def test_installments_complete_on_last_month(repo: ApplicationRepository, approved_application: str, clock_at):
    reconciler = ReconciliationService(repo, clock=clock_at(2025, 3))
    await reconciler.select_plan(approved_application, PaymentPlan.SIX_MONTHS)
    labels = month_labels(6, date(2025, 3, 1))

    for label in labels[:-1]:
        outcome = await reconciler.record_payment(approved_application, PaymentPlan.SIX_MONTHS, label, 38334)
        assert outcome.plan_complete is False

    assert repo.get(approved_application)["paymentStatus"] == "application_paid"

    outcome = await reconciler.record_payment(approved_application, PaymentPlan.SIX_MONTHS, labels[-1], 38334)

    document = repo.get(approved_application)
    assert outcome.plan_complete is True
    assert outcome.month_key == "august_2025"
    assert document["paymentStatus"] == "fully_paid"
    assert len(document["payments"]) == 6
    assert await reconciler.is_plan_complete(approved_application, PaymentPlan.SIX_MONTHS) is True


async def test_recording_same_month_twice_is_idempotent(repo: ApplicationRepository, approved_application: str, clock_at):
    reconciler = ReconciliationService(repo, clock=clock_at(2025, 3))
    await reconciler.select_plan(approved_application, PaymentPlan.SIX_MONTHS)

    await reconciler.record_payment(approved_application, PaymentPlan.SIX_MONTHS, "March 2025", 38334)
    await reconciler.record_payment(approved_application, PaymentPlan.SIX_MONTHS, "march 2025", 38334)

    payments = repo.get(approved_application)["payments"]
    assert list(payments) == ["march_2025"]
    assert payments["march_2025"]["paid"] is True


async def test_plan_reselection_orphans_earlier_payments(repo: ApplicationRepository, approved_application: str, clock_at):
    """Switching plan in May restarts the schedule; March and April no longer count"""
    march = ReconciliationService(repo, clock=clock_at(2025, 3))
    await march.select_plan(approved_application, PaymentPlan.SIX_MONTHS)
    await march.record_payment(approved_application, PaymentPlan.SIX_MONTHS, "March 2025", 38334)
    await march.record_payment(approved_application, PaymentPlan.SIX_MONTHS, "April 2025", 38334)

    may = ReconciliationService(repo, clock=clock_at(2025, 5))
    record = await may.select_plan(approved_application, PaymentPlan.TEN_MONTHS)

    assert record["paymentPlan"] == "tenMonths"
    assert record["paymentStartDate"].startswith("2025-05-14")
    assert set(record["payments"]) == {"march_2025", "april_2025"}
    assert await may.is_plan_complete(approved_application, PaymentPlan.TEN_MONTHS) is False


async def test_missing_month_is_rejected_before_writing(repo: ApplicationRepository, approved_application: str, clock_at):
    reconciler = ReconciliationService(repo, clock=clock_at(2025, 3))
    version = repo.version(approved_application)

    with pytest.raises(MissingInstallmentMonthError):
        await reconciler.record_payment(approved_application, PaymentPlan.TEN_MONTHS, None, 25000)

    assert repo.version(approved_application) == version


async def test_unknown_application(repo: ApplicationRepository, clock_at):
    reconciler = ReconciliationService(repo, clock=clock_at(2025, 3))

    with pytest.raises(ApplicationNotFoundError):
        await reconciler.record_payment("ghost", PaymentPlan.UPFRONT, None, 110000)
    assert await reconciler.is_plan_complete("ghost", PaymentPlan.SIX_MONTHS) is False


async def test_change_status_appends_history(repo: ApplicationRepository, approved_application: str, clock_at):
    reconciler = ReconciliationService(repo, clock=clock_at(2025, 3))

    await reconciler.change_status(approved_application, ApplicationStatus.UNDER_REVIEW)
    record = await reconciler.change_status(approved_application, ApplicationStatus.APPROVED)

    assert record["status"] == "approved"
    assert [update["status"] for update in record["statusUpdates"]] == ["under-review", "approved"]


async def test_same_month_switch_to_shorter_plan_is_not_complete(
    repo: ApplicationRepository, approved_application: str, clock_at
):
    """Six paid ten-month installments (150000) never complete a six-month plan (230000)"""
    reconciler = ReconciliationService(repo, clock=clock_at(2025, 3))
    await reconciler.select_plan(approved_application, PaymentPlan.TEN_MONTHS)
    for label in month_labels(6, date(2025, 3, 1)):
        await reconciler.record_payment(approved_application, PaymentPlan.TEN_MONTHS, label, 25000)

    later_that_day = ReconciliationService(repo, clock=clock_at(2025, 3, day=20))
    await later_that_day.select_plan(approved_application, PaymentPlan.SIX_MONTHS)

    assert await later_that_day.is_plan_complete(approved_application, PaymentPlan.SIX_MONTHS) is False

    outcome = await later_that_day.record_payment(
        approved_application, PaymentPlan.SIX_MONTHS, "March 2025", 38334
    )
    assert outcome.plan_complete is False
    assert repo.get(approved_application)["paymentStatus"] == "application_paid"


async def test_installment_without_stored_start_fixes_the_start(
    repo: ApplicationRepository, approved_application: str, clock_at
):
    reconciler = ReconciliationService(repo, clock=clock_at(2025, 3))

    await reconciler.record_payment(approved_application, PaymentPlan.SIX_MONTHS, "March 2025", 38334)

    document = repo.get(approved_application)
    assert document["paymentStartDate"] == "2025-03-14T10:30:00.000Z"
    assert document["payments"]["march_2025"]["planStartDate"] == document["paymentStartDate"]
    assert document["payments"]["march_2025"]["plan"] == "sixMonths"


async def test_reselection_resets_fully_paid_status(repo: ApplicationRepository, approved_application: str, clock_at):
    march = ReconciliationService(repo, clock=clock_at(2025, 3))
    await march.select_plan(approved_application, PaymentPlan.SIX_MONTHS)
    for label in month_labels(6, date(2025, 3, 1)):
        await march.record_payment(approved_application, PaymentPlan.SIX_MONTHS, label, 38334)
    assert repo.get(approved_application)["paymentStatus"] == "fully_paid"

    september = ReconciliationService(repo, clock=clock_at(2025, 9))
    record = await september.select_plan(approved_application, PaymentPlan.TEN_MONTHS)

    assert record["paymentStatus"] == "application_paid"
    assert repo.get(approved_application)["paymentStatus"] == "application_paid"
    assert await september.is_plan_complete(approved_application, PaymentPlan.TEN_MONTHS) is False


async def test_reselection_keeps_unrelated_payment_status(
    repo: ApplicationRepository, approved_application: str, clock_at
):
    reconciler = ReconciliationService(repo, clock=clock_at(2025, 3))
    repo.set(approved_application, {"paymentStatus": "pending"})

    record = await reconciler.select_plan(approved_application, PaymentPlan.SIX_MONTHS)

    assert record["paymentStatus"] == "pending"
