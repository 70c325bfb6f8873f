"""Paystack HTTP client for verifying transaction references"""

import logging
from urllib.parse import quote
import httpx
from tuition_gateway.domain.exceptions import PaymentGatewayError
from tuition_gateway.config import settings
from tuition_gateway.infrastructure.observability.metrics import (
    verification_failure_counter,
    verification_latency_histogram,
)

logger = logging.getLogger(__name__)


class PaystackClient:
    """Client for the Paystack transaction verification API"""

    name = "paystack"

    def __init__(
        self,
        base_url: str | None = None,
        secret_key: str | None = None,
        timeout: float | None = None,
        mode: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.paystack_api_base
        self.secret_key = secret_key if secret_key is not None else settings.paystack_secret_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.mode = mode or settings.payment_verification_mode
        self.transport = transport

    async def verify(self, reference: str) -> bool:
        """
        Confirm a transaction reference with Paystack.

        In stub mode any non-empty reference is accepted without a network
        call. In live mode the transaction must report status "success".

        Raises:
            PaymentGatewayError: On timeout, HTTP errors, or invalid response
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
                    response = await client.get(
                        f"{self.base_url}/transaction/verify/{quote(reference, safe='')}",
                        headers={"Authorization": f"Bearer {self.secret_key}"},
                    )
                response.raise_for_status()
                data = response.json()
                return data["data"]["status"] == "success"

            except httpx.TimeoutException as e:
                verification_failure_counter.labels(gateway=self.name).inc()
                raise PaymentGatewayError(f"Paystack timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                verification_failure_counter.labels(gateway=self.name).inc()
                raise PaymentGatewayError(f"Paystack error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                verification_failure_counter.labels(gateway=self.name).inc()
                raise PaymentGatewayError(f"Paystack unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                verification_failure_counter.labels(gateway=self.name).inc()
                raise PaymentGatewayError(f"Invalid verification data from Paystack: {e}") from e
