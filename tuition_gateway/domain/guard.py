"""Single-slot in-flight payment guard, one slot per application"""

import threading
import uuid
from typing import Dict, Optional
from tuition_gateway.domain.exceptions import PaymentInProgressError, StalePaymentTokenError
from tuition_gateway.domain.models import PendingPayment
from tuition_gateway.utils.date_utils import utc_now


class PaymentGuard:
    """
    Blocks a second payment for an application while one is in flight.

    Each acquire issues a unique token. Gateway callbacks and cancellations
    must present the token; a mismatched token means the callback belongs to
    an earlier attempt and is rejected instead of clearing the current one.
    Scoped to one service process.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._slots: Dict[str, PendingPayment] = {}

    @staticmethod
    def new_token() -> str:
        return uuid.uuid4().hex

    def acquire(self, pending: PendingPayment) -> PendingPayment:
        with self._lock:
            if pending.application_id in self._slots:
                raise PaymentInProgressError(
                    "Another payment is being processed. Please wait."
                )
            if not pending.token:
                pending.token = self.new_token()
            if pending.created_at is None:
                pending.created_at = utc_now()
            self._slots[pending.application_id] = pending
            return pending

    def release(self, application_id: str, token: str) -> PendingPayment:
        """Free the slot if token matches; returns the released payment"""
        with self._lock:
            current = self._slots.get(application_id)
            if current is None or current.token != token:
                raise StalePaymentTokenError(
                    f"No in-flight payment for {application_id} matches this token"
                )
            return self._slots.pop(application_id)

    def peek(self, application_id: str) -> Optional[PendingPayment]:
        with self._lock:
            return self._slots.get(application_id)

    def is_processing(self, application_id: str) -> bool:
        return self.peek(application_id) is not None
