"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from tuition_gateway.domain.guard import PaymentGuard
from tuition_gateway.infrastructure.cache import ApplicationListCache
from tuition_gateway.infrastructure.clients.payfast import PayFastClient
from tuition_gateway.infrastructure.clients.paystack import PaystackClient
from tuition_gateway.infrastructure.database.repositories import ApplicationRepository
from tuition_gateway.infrastructure.database.session import get_db
from tuition_gateway.services.payments import PaymentService
from tuition_gateway.services.reconciliation import ReconciliationService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_repository(db: Session = Depends(get_db)) -> ApplicationRepository:
    return ApplicationRepository(db)


def get_reconciler(repo: ApplicationRepository = Depends(get_repository)) -> ReconciliationService:
    return ReconciliationService(repo)


def get_payment_guard(request: Request) -> PaymentGuard:
    """In-flight guard owned by the running app"""
    return request.app.state.payment_guard


def get_application_cache(request: Request) -> ApplicationListCache:
    return request.app.state.application_cache


def get_paystack_client() -> PaystackClient:
    """Provide Paystack verification client instance"""
    return PaystackClient()


def get_payfast_client() -> PayFastClient:
    """Provide PayFast verification client instance"""
    return PayFastClient()


def get_payment_service(
    reconciler: ReconciliationService = Depends(get_reconciler),
    guard: PaymentGuard = Depends(get_payment_guard),
    paystack: PaystackClient = Depends(get_paystack_client),
    payfast: PayFastClient = Depends(get_payfast_client),
) -> PaymentService:
    return PaymentService(reconciler, guard, {paystack.name: paystack, payfast.name: payfast})
