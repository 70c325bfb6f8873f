"""Domain-specific exceptions"""

from typing import List


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ApplicationValidationError(DomainException):
    """Submitted application form failed validation"""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


class ApplicationNotFoundError(DomainException):
    """No application document exists for the given id"""

    pass


class PaymentNotAllowedError(DomainException):
    """Application is not in a state that accepts this payment"""

    pass


class MissingInstallmentMonthError(DomainException):
    """Installment payment recorded without a month label"""

    pass


class PaymentInProgressError(DomainException):
    """Another payment for the same application is still in flight"""

    pass


class StalePaymentTokenError(DomainException):
    """Callback token does not match the in-flight payment"""

    pass


class PaymentCancelledError(DomainException):
    """Payer closed the gateway before completing the payment"""

    pass


class PaymentGatewayError(DomainException):
    """Payment gateway returned an error or is unavailable"""

    pass


class DocumentStoreError(DomainException):
    """Document store read or write failed"""

    pass


class ConcurrentUpdateError(DocumentStoreError):
    """Document changed between read and conditional write"""

    pass
