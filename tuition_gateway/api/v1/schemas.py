"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional

from tuition_gateway.domain.models import ApplicationStatus, PaymentPlan


class FeeRow(BaseModel):
    """Fees for one subject count"""

    subject_count: int
    upfront_cents: int
    six_months_cents: int
    ten_months_cents: int


class FeeScheduleResponse(BaseModel):
    """Response for GET /v1/fees/schedule"""

    currency: str
    subjects: List[FeeRow]
    application_fee_new_cents: int
    application_fee_returning_cents: int


class InstallmentSchema(BaseModel):
    """Single installment in a tuition schedule"""

    month_label: str
    amount_cents: int


class QuoteResponse(BaseModel):
    """Response for GET /v1/fees/quote"""

    subject_count: int
    billed_subject_count: int
    plan: PaymentPlan
    total_cents: int
    installment_count: int
    installment_cents: int
    scheduled_total_cents: int
    overcollection_cents: int
    total_display: str
    installment_display: str
    installments: List[InstallmentSchema]


class ApplicationRequest(BaseModel):
    """Request body for POST /v1/applications (field names match the stored document)"""

    application_id: str = Field(..., min_length=1, description="Application (user) identifier")
    firstName: str = ""
    lastName: str = ""
    email: str = ""
    phone: str = ""
    school: str = ""
    grade: str = ""
    parentName: str = ""
    parentEmail: str = ""
    parentPhone: str = ""
    parentRelationship: str = ""
    returningStudent: bool = False
    selectedSubjects: List[str] = Field(default_factory=list)


class ApplicationResponse(BaseModel):
    application_id: str
    status: ApplicationStatus
    payment_status: str


class ScheduleItem(BaseModel):
    month_label: str
    month_key: str
    amount_cents: int
    display_amount: str
    paid: bool


class DashboardResponse(BaseModel):
    """Response for GET /v1/applications/{application_id}"""

    application_id: str
    status: str
    payment_status: str
    subject_count: int
    payment_plan: Optional[PaymentPlan] = None
    payment_start_date: Optional[str] = None
    can_pay_tuition: bool
    schedule_provisional: bool
    schedule: List[ScheduleItem]
    plan_complete: bool
    total_cents: Optional[int] = None
    scheduled_total_cents: Optional[int] = None
    billed_subject_count: Optional[int] = None


class PlanSelectionRequest(BaseModel):
    plan: PaymentPlan


class PlanSelectionResponse(BaseModel):
    application_id: str
    plan: PaymentPlan
    payment_start_date: str


class TuitionPaymentRequest(BaseModel):
    """Request body for POST /v1/payments/tuition/initiate"""

    application_id: str = Field(..., min_length=1)
    plan: PaymentPlan
    month: Optional[str] = Field(None, description="Month label, e.g. 'March 2025'; required for installments")


class ApplicationFeePaymentRequest(BaseModel):
    application_id: str = Field(..., min_length=1)


class PaymentInitiatedResponse(BaseModel):
    """Everything the client-side gateway SDK needs, plus the callback token"""

    token: str
    reference: str
    amount_cents: int
    currency: str
    email: str
    public_key: str
    metadata: Dict[str, Any]


class PaymentCallbackRequest(BaseModel):
    """Request body for POST /v1/payments/callback"""

    application_id: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1)
    gateway: Literal["paystack", "payfast"] = "paystack"
    status: str
    reference: str = ""


class PaymentCallbackResponse(BaseModel):
    recorded: bool
    message: str
    plan_complete: bool = False
    payment_status: Optional[str] = None


class PaymentCancelRequest(BaseModel):
    application_id: str = Field(..., min_length=1)
    token: str = Field(..., min_length=1)


class PaymentCancelResponse(BaseModel):
    cancelled: bool
    message: str


class AdminApplicationItem(BaseModel):
    """Denormalized row in the admin application list"""

    application_id: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    grade: str = ""
    status: str
    payment_status: str
    payment_plan: Optional[str] = None


class AdminApplicationList(BaseModel):
    cached: bool
    applications: List[AdminApplicationItem]


class StatusChangeRequest(BaseModel):
    status: ApplicationStatus


class StatusChangeResponse(BaseModel):
    application_id: str
    status: ApplicationStatus
    status_updates: List[Dict[str, str]]
