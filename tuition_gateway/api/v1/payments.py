"""/v1/payments - Tuition and application fee payments"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from tuition_gateway.api.dependencies import get_payment_service, get_request_id
from tuition_gateway.api.v1.schemas import (
    ApplicationFeePaymentRequest,
    PaymentCallbackRequest,
    PaymentCallbackResponse,
    PaymentCancelRequest,
    PaymentCancelResponse,
    PaymentInitiatedResponse,
    TuitionPaymentRequest,
)
from tuition_gateway.config import settings
from tuition_gateway.domain.exceptions import (
    ApplicationNotFoundError,
    ApplicationValidationError,
    DocumentStoreError,
    MissingInstallmentMonthError,
    PaymentGatewayError,
    PaymentInProgressError,
    PaymentNotAllowedError,
    StalePaymentTokenError,
)
from tuition_gateway.domain.models import GatewayResult, PaymentRequest, PendingPayment
from tuition_gateway.infrastructure.observability.logging import log_payment_recorded, log_payment_rejected
from tuition_gateway.infrastructure.observability.metrics import payment_rejected_counter
from tuition_gateway.services.payments import PaymentService

router = APIRouter()


def _initiated(pending: PendingPayment, payment: PaymentRequest) -> PaymentInitiatedResponse:
    return PaymentInitiatedResponse(
        token=pending.token,
        reference=payment.reference,
        amount_cents=payment.amount_cents,
        currency=payment.currency,
        email=payment.email,
        public_key=settings.paystack_public_key,
        metadata=payment.metadata,
    )


def _initiate_error(e: Exception, request_id: str) -> HTTPException:
    if isinstance(e, ApplicationNotFoundError):
        return HTTPException(status_code=404, detail="Application not found")
    if isinstance(e, PaymentInProgressError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, PaymentNotAllowedError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, MissingInstallmentMonthError):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, ApplicationValidationError):
        return HTTPException(status_code=422, detail=e.errors)
    logging.error(f"Document store error: {e}", extra={"request_id": request_id})
    return HTTPException(status_code=503, detail="Document store unavailable")


@router.post("/payments/tuition/initiate", response_model=PaymentInitiatedResponse)
async def initiate_tuition_payment(
    request_body: TuitionPaymentRequest,
    request: Request,
    payments: PaymentService = Depends(get_payment_service),
):
    """
    Start a tuition payment.

    Flow:
    1. Check the application is approved and has subjects
    2. Price the upfront fee or one month's installment
    3. Reserve the application's in-flight slot
    4. Return the gateway payload and the token for the callback
    """
    request_id = get_request_id(request)
    try:
        pending, payment = await payments.initiate_tuition(
            request_body.application_id, request_body.plan, request_body.month
        )
    except (
        ApplicationNotFoundError,
        PaymentInProgressError,
        PaymentNotAllowedError,
        MissingInstallmentMonthError,
        ApplicationValidationError,
        DocumentStoreError,
    ) as e:
        raise _initiate_error(e, request_id)

    logging.info(
        "Tuition payment initiated",
        extra={
            "request_id": request_id,
            "application_id": request_body.application_id,
            "reference": payment.reference,
            "amount_cents": payment.amount_cents,
        },
    )
    return _initiated(pending, payment)


@router.post("/payments/application/initiate", response_model=PaymentInitiatedResponse)
async def initiate_application_fee_payment(
    request_body: ApplicationFeePaymentRequest,
    request: Request,
    payments: PaymentService = Depends(get_payment_service),
):
    """Start the application fee payment (R200 new, R100 returning)"""
    request_id = get_request_id(request)
    try:
        pending, payment = await payments.initiate_application_fee(request_body.application_id)
    except (
        ApplicationNotFoundError,
        PaymentInProgressError,
        PaymentNotAllowedError,
        ApplicationValidationError,
        DocumentStoreError,
    ) as e:
        raise _initiate_error(e, request_id)

    return _initiated(pending, payment)


@router.post("/payments/callback", response_model=PaymentCallbackResponse)
async def payment_callback(
    request_body: PaymentCallbackRequest,
    request: Request,
    payments: PaymentService = Depends(get_payment_service),
):
    """
    Gateway result for an in-flight payment.

    Verifies the reference with the gateway, then records the payment and
    re-derives plan completion. A failed or unverified payment is reported
    with recorded=false and nothing is written.
    """
    request_id = get_request_id(request)
    app_id = request_body.application_id
    pending = payments.guard.peek(app_id)

    try:
        outcome = await payments.handle_callback(
            app_id,
            request_body.token,
            request_body.gateway,
            GatewayResult(status=request_body.status, reference=request_body.reference),
        )

    except StalePaymentTokenError as e:
        payment_rejected_counter.labels(reason="stale_token").inc()
        log_payment_rejected(request_id, app_id, request_body.reference, "stale_token")
        raise HTTPException(status_code=409, detail=str(e))

    except PaymentGatewayError as e:
        logging.error(f"Payment gateway error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Payment gateway unavailable")

    except ApplicationNotFoundError:
        raise HTTPException(status_code=404, detail="Application not found")

    except DocumentStoreError as e:
        logging.error(
            f"Verified payment could not be recorded: {e}",
            extra={"request_id": request_id, "application_id": app_id, "reference": request_body.reference},
        )
        raise HTTPException(status_code=503, detail="Document store unavailable")

    if outcome.recorded:
        log_payment_recorded(
            request_id,
            app_id,
            pending.plan.value if pending and pending.plan else outcome.kind.value,
            pending.month_label if pending else None,
            pending.amount_cents if pending else 0,
            outcome.plan_complete,
        )
    else:
        log_payment_rejected(request_id, app_id, request_body.reference, request_body.status)

    return PaymentCallbackResponse(
        recorded=outcome.recorded,
        message=outcome.message,
        plan_complete=outcome.plan_complete,
        payment_status=outcome.payment_status,
    )


@router.post("/payments/cancel", response_model=PaymentCancelResponse)
def cancel_payment(
    request_body: PaymentCancelRequest,
    payments: PaymentService = Depends(get_payment_service),
):
    """Payer closed the gateway: release the slot, nothing is written"""
    try:
        cancellation = payments.cancel(request_body.application_id, request_body.token)
    except StalePaymentTokenError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return PaymentCancelResponse(cancelled=True, message=str(cancellation))
