"""Payment initiation, gateway callback handling and cancellation"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Protocol
from tuition_gateway.config import settings
from tuition_gateway.domain.exceptions import (
    ApplicationValidationError,
    MissingInstallmentMonthError,
    PaymentCancelledError,
    PaymentGatewayError,
    PaymentNotAllowedError,
)
from tuition_gateway.domain.fees import application_fee_for, fee_for, monthly_amount, to_major_units
from tuition_gateway.domain.guard import PaymentGuard
from tuition_gateway.domain.models import (
    ApplicationStatus,
    GatewayResult,
    PaymentKind,
    PaymentPlan,
    PaymentRequest,
    PaymentStatus,
    PendingPayment,
)
from tuition_gateway.domain.validation import validate_payment_request
from tuition_gateway.infrastructure.observability.metrics import (
    payment_initiated_counter,
    payment_rejected_counter,
    record_payment_metric,
)
from tuition_gateway.services.applications import subject_count_of
from tuition_gateway.services.reconciliation import ReconciliationService
from tuition_gateway.utils.date_utils import epoch_millis

logger = logging.getLogger(__name__)


class VerificationClient(Protocol):
    name: str

    async def verify(self, reference: str) -> bool: ...


@dataclass
class CallbackOutcome:
    """What happened to one gateway callback"""

    recorded: bool
    message: str
    kind: PaymentKind
    plan_complete: bool = False
    payment_status: Optional[str] = None


def tuition_reference(application_id: str, plan: PaymentPlan, month_label: Optional[str]) -> str:
    month_ref = month_label.strip().replace(" ", "_") if month_label else "FIRST"
    return f"TUITION_{plan.value.upper()}_{month_ref}_{application_id}_{epoch_millis()}"


def application_fee_reference(application_id: str) -> str:
    return f"APPLICATION_{application_id}_{epoch_millis()}"


class PaymentService:
    """
    Runs a payment as an explicit request/response exchange.

    initiate_* acquires the application's in-flight slot and returns the
    request the gateway SDK needs; handle_callback and cancel must present the
    token issued with it.
    """

    def __init__(
        self,
        reconciler: ReconciliationService,
        guard: PaymentGuard,
        gateways: Dict[str, VerificationClient],
    ):
        self.reconciler = reconciler
        self.guard = guard
        self.gateways = gateways

    def _checked_request(self, request: PaymentRequest) -> PaymentRequest:
        errors = validate_payment_request(request)
        if errors:
            raise ApplicationValidationError(errors)
        return request

    async def initiate_tuition(
        self,
        application_id: str,
        plan: PaymentPlan,
        month_label: Optional[str] = None,
    ) -> tuple[PendingPayment, PaymentRequest]:
        """
        Prepare a tuition payment for the whole upfront fee or one month.

        Raises:
            PaymentNotAllowedError: application not approved or no subjects
            MissingInstallmentMonthError: installment plan without a month
            PaymentInProgressError: a payment is already in flight
        """
        plan = PaymentPlan(plan)
        record = await self.reconciler.get_application(application_id)

        if record.get("status") != ApplicationStatus.APPROVED.value:
            raise PaymentNotAllowedError(
                "Your application must be approved before you can pay tuition fees."
            )
        subject_count = subject_count_of(record)
        if subject_count == 0:
            raise PaymentNotAllowedError("No subjects selected")

        if plan is PaymentPlan.UPFRONT:
            amount = fee_for(subject_count, plan)
            month_label = None
        else:
            if not month_label or not month_label.strip():
                raise MissingInstallmentMonthError(f"{plan.value} payment requires a month label")
            amount = monthly_amount(subject_count, plan)

        request = self._checked_request(
            PaymentRequest(
                amount_cents=amount,
                currency=settings.currency,
                reference=tuition_reference(application_id, plan, month_label),
                email=record.get("email", ""),
                metadata={
                    "application_id": application_id,
                    "payment_type": PaymentKind.TUITION.value,
                    "subject_count": subject_count,
                    "payment_plan": plan.value,
                    "monthly_amount": f"{to_major_units(amount):.2f}",
                    "payment_month": month_label or "first_payment",
                },
            )
        )
        pending = self.guard.acquire(
            PendingPayment(
                application_id=application_id,
                token=PaymentGuard.new_token(),
                kind=PaymentKind.TUITION,
                amount_cents=amount,
                reference=request.reference,
                plan=plan,
                month_label=month_label,
            )
        )
        payment_initiated_counter.labels(kind=PaymentKind.TUITION.value).inc()
        return pending, request

    async def initiate_application_fee(self, application_id: str) -> tuple[PendingPayment, PaymentRequest]:
        record = await self.reconciler.get_application(application_id)
        if record.get("paymentStatus") in (
            PaymentStatus.APPLICATION_PAID.value,
            PaymentStatus.FULLY_PAID.value,
        ):
            raise PaymentNotAllowedError("Application fee already paid")

        amount = application_fee_for(bool(record.get("returningStudent")))
        request = self._checked_request(
            PaymentRequest(
                amount_cents=amount,
                currency=settings.currency,
                reference=application_fee_reference(application_id),
                email=record.get("email", ""),
                metadata={
                    "application_id": application_id,
                    "payment_type": PaymentKind.APPLICATION_FEE.value,
                },
            )
        )
        pending = self.guard.acquire(
            PendingPayment(
                application_id=application_id,
                token=PaymentGuard.new_token(),
                kind=PaymentKind.APPLICATION_FEE,
                amount_cents=amount,
                reference=request.reference,
            )
        )
        payment_initiated_counter.labels(kind=PaymentKind.APPLICATION_FEE.value).inc()
        return pending, request

    async def verify(self, gateway: str, reference: str) -> bool:
        client = self.gateways.get(gateway)
        if client is None:
            raise PaymentGatewayError(f"Unknown payment gateway: {gateway}")
        return await client.verify(reference)

    async def handle_callback(
        self,
        application_id: str,
        token: str,
        gateway: str,
        result: GatewayResult,
    ) -> CallbackOutcome:
        """
        Record a gateway result for the in-flight payment.

        The slot is released whatever happens, so the payer can retry. Amount,
        plan and month come from the pending payment, not from the callback.

        Raises:
            StalePaymentTokenError: token does not match the in-flight payment
            PaymentGatewayError: verification call failed
            DocumentStoreError: payment verified but could not be written
        """
        pending = self.guard.release(application_id, token)

        verified = result.succeeded and await self.verify(gateway, result.reference)
        if not verified:
            reason = "failed" if not result.succeeded else "unverified"
            payment_rejected_counter.labels(reason=reason).inc()
            return CallbackOutcome(
                recorded=False,
                message="Payment failed or not verified. Please try again.",
                kind=pending.kind,
            )

        if pending.kind is PaymentKind.APPLICATION_FEE:
            await self.reconciler.mark_payment_status(application_id, PaymentStatus.APPLICATION_PAID)
            record_payment_metric(PaymentKind.APPLICATION_FEE.value, completed=False)
            return CallbackOutcome(
                recorded=True,
                message="Application fee paid successfully!",
                kind=pending.kind,
                payment_status=PaymentStatus.APPLICATION_PAID.value,
            )

        outcome = await self.reconciler.record_payment(
            application_id,
            pending.plan,
            pending.month_label,
            pending.amount_cents,
            gateway_reference=result.reference,
        )
        record_payment_metric(pending.plan.value, completed=outcome.plan_complete)

        if pending.plan is PaymentPlan.UPFRONT:
            message = "Full tuition payment successful! Your enrollment is complete."
        elif outcome.plan_complete:
            message = "All tuition payments completed! Your enrollment is complete."
        else:
            message = f"{pending.month_label} payment successful!"
        return CallbackOutcome(
            recorded=True,
            message=message,
            kind=pending.kind,
            plan_complete=outcome.plan_complete,
            payment_status=PaymentStatus.FULLY_PAID.value if outcome.plan_complete else None,
        )

    def cancel(self, application_id: str, token: str) -> PaymentCancelledError:
        """
        Payer closed the gateway modal: free the slot, write nothing.

        Returns the typed cancellation so callers can report it.
        """
        pending = self.guard.release(application_id, token)
        payment_rejected_counter.labels(reason="cancelled").inc()
        if pending.kind is PaymentKind.APPLICATION_FEE:
            return PaymentCancelledError(
                "Application fee payment cancelled. Application cannot be submitted without payment."
            )
        return PaymentCancelledError("Tuition payment cancelled. You can pay later.")
