"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class PaymentPlan(str, Enum):
    """Tuition payment plan (wire values match the stored document)"""

    UPFRONT = "upfront"
    SIX_MONTHS = "sixMonths"
    TEN_MONTHS = "tenMonths"

    @property
    def installment_count(self) -> int:
        return {"upfront": 1, "sixMonths": 6, "tenMonths": 10}[self.value]

    @property
    def display_name(self) -> str:
        return {
            "upfront": "Upfront Payment",
            "sixMonths": "6 Months Installment",
            "tenMonths": "10 Months Installment",
        }[self.value]


class ApplicationStatus(str, Enum):
    """Review status set by admins"""

    SUBMITTED = "submitted"
    UNDER_REVIEW = "under-review"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(str, Enum):
    """Overall payment progress stored as paymentStatus"""

    PENDING = "pending"
    APPLICATION_PAID = "application_paid"
    FULLY_PAID = "fully_paid"


class PaymentKind(str, Enum):
    APPLICATION_FEE = "application_fee"
    TUITION = "tuition_fees"


@dataclass
class Installment:
    """Single monthly payment in a tuition schedule"""

    month_label: str
    amount_cents: int


@dataclass
class PaymentRequest:
    """Payload handed to the client-side gateway SDK"""

    amount_cents: int
    reference: str
    email: str
    currency: str = "ZAR"
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PendingPayment:
    """In-flight payment held by the guard until the gateway reports back"""

    application_id: str
    token: str
    kind: PaymentKind
    amount_cents: int
    reference: str
    plan: Optional[PaymentPlan] = None
    month_label: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class GatewayResult:
    """Outcome reported by the payment gateway"""

    status: str
    reference: str

    @property
    def succeeded(self) -> bool:
        return self.status == "success"
