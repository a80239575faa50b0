"""Mock payment provider used when no payment credentials are configured."""
import logging
from urllib.parse import urlencode

from app.db.models import Order
from app.services.payment.base import CheckoutSession, PaymentProvider

logger = logging.getLogger(__name__)


class MockPaymentProvider(PaymentProvider):
    """Sends the shopper straight to the success page in mock mode."""

    async def create_checkout(
        self, order: Order, success_url: str, cancel_url: str
    ) -> CheckoutSession:
        separator = "&" if "?" in success_url else "?"
        query = urlencode({"orderId": order.id, "mock": "true"})
        logger.info(f"[PAYMENT] Mock checkout for order {order.id}")
        return CheckoutSession(
            url=f"{success_url}{separator}{query}",
            reference=f"mock_{order.id}",
        )
