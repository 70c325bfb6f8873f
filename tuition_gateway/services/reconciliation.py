"""Store-backed payment reconciliation: record payments and re-derive plan completion"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional
from tuition_gateway.domain.exceptions import ApplicationNotFoundError
from tuition_gateway.domain.installments import normalize_month_key
from tuition_gateway.domain.models import ApplicationStatus, PaymentPlan, PaymentStatus
from tuition_gateway.domain.reconciliation import payment_update, plan_complete, require_month
from tuition_gateway.infrastructure.database.repositories import ApplicationRepository, deep_merge
from tuition_gateway.infrastructure.retry import retry_operation
from tuition_gateway.utils.date_utils import iso_timestamp, utc_now

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationOutcome:
    """Result of writing one payment"""

    plan: PaymentPlan
    month_key: Optional[str]
    plan_complete: bool
    version: int


class ReconciliationService:
    """
    Applies payment outcomes to application documents.

    Each operation reads the document, derives the new state and writes it
    back with a version check; a concurrent write makes the attempt fail and
    the retry wrapper starts over from a fresh read.
    """

    def __init__(self, repo: ApplicationRepository, clock: Callable[[], datetime] = utc_now):
        self.repo = repo
        self.clock = clock

    def _read(self, application_id: str) -> tuple[Dict[str, Any], int]:
        record = self.repo.get(application_id)
        if record is None:
            raise ApplicationNotFoundError(f"Application {application_id} not found")
        return record, self.repo.version(application_id)

    async def get_application(self, application_id: str) -> Dict[str, Any]:
        record = await retry_operation(lambda: self.repo.get(application_id))
        if record is None:
            raise ApplicationNotFoundError(f"Application {application_id} not found")
        return record

    async def record_payment(
        self,
        application_id: str,
        plan: PaymentPlan,
        month_label: Optional[str],
        amount_cents: int,
        gateway_reference: Optional[str] = None,
    ) -> ReconciliationOutcome:
        """
        Mark the upfront lump sum or one installment month as paid.

        Recording the same month twice overwrites the same entry. An
        installment with no stored plan start fixes paymentStartDate to now.
        When the write completes the plan, paymentStatus becomes fully_paid
        in the same write.

        Raises:
            MissingInstallmentMonthError: installment plan without a month
            ApplicationNotFoundError: no such application
            DocumentStoreError: store still failing after retries
        """
        plan = PaymentPlan(plan)
        now = self.clock()
        require_month(plan, month_label)

        async def attempt() -> ReconciliationOutcome:
            record, version = self._read(application_id)
            plan_start = record.get("paymentStartDate") or iso_timestamp(now)
            update = payment_update(plan, month_label, amount_cents, now, gateway_reference, plan_start=plan_start)
            if plan is not PaymentPlan.UPFRONT:
                update["paymentStartDate"] = plan_start
            complete = plan_complete(deep_merge(record, update), plan, today=now.date())
            changes = dict(update, updatedAt=iso_timestamp(now))
            if complete:
                changes["paymentStatus"] = PaymentStatus.FULLY_PAID.value
            new_version = self.repo.set(application_id, changes, expected_version=version)
            return ReconciliationOutcome(
                plan=plan,
                month_key=normalize_month_key(month_label) if month_label and plan is not PaymentPlan.UPFRONT else None,
                plan_complete=complete,
                version=new_version,
            )

        outcome = await retry_operation(attempt)
        logger.info(
            "Tuition payment reconciled",
            extra={
                "application_id": application_id,
                "plan": plan.value,
                "month_key": outcome.month_key,
                "plan_complete": outcome.plan_complete,
            },
        )
        return outcome

    async def is_plan_complete(self, application_id: str, plan: PaymentPlan) -> bool:
        """Fetch the document and check every scheduled month is paid; missing -> False"""
        record = await retry_operation(lambda: self.repo.get(application_id))
        return plan_complete(record, plan, today=self.clock().date())

    async def select_plan(self, application_id: str, plan: PaymentPlan) -> Dict[str, Any]:
        """
        Choose (or re-choose) a payment plan starting this month.

        Re-selection moves paymentStartDate; payments recorded earlier stay in
        the document but no longer count towards the new schedule. A
        fully_paid status is re-derived against the new plan in the same
        write.
        """
        plan = PaymentPlan(plan)
        now = self.clock()

        def attempt() -> Dict[str, Any]:
            record, version = self._read(application_id)
            changes = {
                "paymentPlan": plan.value,
                "paymentStartDate": iso_timestamp(now),
                "updatedAt": iso_timestamp(now),
            }
            if record.get("paymentStatus") == PaymentStatus.FULLY_PAID.value and not plan_complete(
                deep_merge(record, changes), plan, today=now.date()
            ):
                changes["paymentStatus"] = PaymentStatus.APPLICATION_PAID.value
            if record.get("paymentPlan") and record.get("paymentPlan") != plan.value:
                logger.warning(
                    "Payment plan re-selected, earlier installments no longer count",
                    extra={
                        "application_id": application_id,
                        "previous_plan": record.get("paymentPlan"),
                        "plan": plan.value,
                    },
                )
            self.repo.set(application_id, changes, expected_version=version)
            return deep_merge(record, changes)

        return await retry_operation(attempt)

    async def mark_payment_status(self, application_id: str, status: PaymentStatus) -> None:
        now = iso_timestamp(self.clock())
        await retry_operation(
            lambda: self.repo.set(
                application_id,
                {"paymentStatus": PaymentStatus(status).value, "updatedAt": now},
            )
        )

    async def change_status(self, application_id: str, status: ApplicationStatus) -> Dict[str, Any]:
        """Admin review transition; appends to statusUpdates"""
        status = ApplicationStatus(status)
        now = iso_timestamp(self.clock())

        def attempt() -> Dict[str, Any]:
            record, version = self._read(application_id)
            history = list(record.get("statusUpdates") or [])
            history.append({"status": status.value, "timestamp": now})
            changes = {"status": status.value, "statusUpdates": history, "updatedAt": now}
            self.repo.set(application_id, changes, expected_version=version)
            return deep_merge(record, changes)

        return await retry_operation(attempt)
