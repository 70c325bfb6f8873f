"""Application form and payment request validation"""

import re
from typing import Any, Dict, List
from tuition_gateway.domain.models import PaymentRequest

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# South African mobile/landline: +27 or 0, then 9 digits starting 6-8
PHONE_PATTERN = re.compile(r"^(\+27|0)[6-8][0-9]{8}$")
ID_NUMBER_PATTERN = re.compile(r"^[0-9]{13}$")


def _strip_spaces(value: str) -> str:
    return re.sub(r"\s+", "", value)


def validate_email(email: str | None) -> bool:
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email)) and len(email) <= 254


def validate_phone(phone: str | None) -> bool:
    if not phone:
        return False
    return bool(PHONE_PATTERN.match(_strip_spaces(phone)))


def validate_id_number(id_number: str | None) -> bool:
    """13-digit SA ID number (structure only, no checksum)"""
    if not id_number:
        return False
    return bool(ID_NUMBER_PATTERN.match(_strip_spaces(id_number)))


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate_application_form(form: Dict[str, Any]) -> List[str]:
    """
    Collect every problem with a submitted application form.

    Returns an empty list when the form is valid; callers decide whether to
    raise.
    """
    errors = []
    if _blank(form.get("firstName")):
        errors.append("First name is required")
    if _blank(form.get("lastName")):
        errors.append("Last name is required")
    if _blank(form.get("school")):
        errors.append("Current school is required")
    if _blank(form.get("grade")):
        errors.append("Please select a grade")
    if not validate_email(form.get("email")):
        errors.append("Valid student email is required")
    if not validate_phone(form.get("phone")):
        errors.append("Valid student phone number is required")
    if _blank(form.get("parentName")):
        errors.append("Parent full name is required")
    if _blank(form.get("parentRelationship")):
        errors.append("Relationship to student is required")
    if not validate_email(form.get("parentEmail")):
        errors.append("Valid parent email is required")
    if not validate_phone(form.get("parentPhone")):
        errors.append("Valid parent phone number is required")
    if not form.get("selectedSubjects"):
        errors.append("Please select at least one subject")
    return errors


def validate_payment_request(request: PaymentRequest) -> List[str]:
    """Checks made before handing a payment to the gateway SDK"""
    errors = []
    missing = [
        name
        for name, value in (
            ("email", request.email),
            ("amount", request.amount_cents),
            ("currency", request.currency),
            ("ref", request.reference),
        )
        if not value
    ]
    if missing:
        errors.append(f"Missing required fields: {', '.join(missing)}")
    if request.amount_cents <= 0:
        errors.append("Invalid payment amount")
    if request.email and not validate_email(request.email):
        errors.append("Invalid email address")
    return errors
