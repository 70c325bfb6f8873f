"""PayFast HTTP client for validating payment notifications"""

import logging
import httpx
from tuition_gateway.domain.exceptions import PaymentGatewayError
from tuition_gateway.config import settings
from tuition_gateway.infrastructure.observability.metrics import (
    verification_failure_counter,
    verification_latency_histogram,
)

logger = logging.getLogger(__name__)


class PayFastClient:
    """Client for the PayFast server-side validation endpoint"""

    name = "payfast"

    def __init__(
        self,
        base_url: str | None = None,
        merchant_id: str | None = None,
        timeout: float | None = None,
        mode: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.payfast_api_base
        self.merchant_id = merchant_id if merchant_id is not None else settings.payfast_merchant_id
        self.timeout = timeout or settings.http_timeout_seconds
        self.mode = mode or settings.payment_verification_mode
        self.transport = transport

    async def verify(self, reference: str) -> bool:
        """
        Ask PayFast whether a payment reference is genuine.

        PayFast answers the validate call with a plain-text VALID/INVALID body.

        Raises:
            PaymentGatewayError: On timeout or HTTP errors
        """
        if not reference:
            return False
        if self.mode != "live":
            logger.warning(
                "Payment verification stubbed, reference accepted unchecked",
                extra={"gateway": self.name, "reference": reference},
            )
            return True

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with verification_latency_histogram.labels(gateway=self.name).time():
                    response = await client.post(
                        f"{self.base_url}/eng/query/validate",
                        data={"merchant_id": self.merchant_id, "m_payment_id": reference},
                    )
                response.raise_for_status()
                return response.text.strip() == "VALID"

            except httpx.TimeoutException as e:
                verification_failure_counter.labels(gateway=self.name).inc()
                raise PaymentGatewayError(f"PayFast timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                verification_failure_counter.labels(gateway=self.name).inc()
                raise PaymentGatewayError(f"PayFast error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                verification_failure_counter.labels(gateway=self.name).inc()
                raise PaymentGatewayError(f"PayFast unreachable: {e}") from e
