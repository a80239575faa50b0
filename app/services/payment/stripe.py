"""Stripe Checkout payment provider."""
import logging
from decimal import Decimal
from typing import Dict, Optional

import httpx

from app.core.errors import ServiceUnavailableError
from app.core.i18n import pick_localized
from app.db.models import Order
from app.services.payment.base import CheckoutSession, PaymentProvider

logger = logging.getLogger(__name__)

STRIPE_API_URL = "https://api.stripe.com/v1"


def to_minor_units(amount: Decimal) -> int:
    """Convert a EUR amount to cents."""
    return int((Decimal(amount) * 100).to_integral_value())


class StripePaymentProvider(PaymentProvider):
    """Creates Stripe Checkout Sessions through the REST API."""

    def __init__(
        self,
        secret_key: str,
        client: Optional[httpx.AsyncClient] = None,
        currency: str = "eur",
        timeout: float = 10.0,
    ):
        self.secret_key = secret_key
        self.client = client
        self.currency = currency
        self.timeout = timeout

    def build_form(self, order: Order, success_url: str, cancel_url: str) -> Dict[str, str]:
        """Form fields for the checkout session request."""
        separator = "&" if "?" in success_url else "?"
        form = {
            "mode": "payment",
            "success_url": (
                f"{success_url}{separator}session_id={{CHECKOUT_SESSION_ID}}&orderId={order.id}"
            ),
            "cancel_url": cancel_url,
            "client_reference_id": str(order.id),
            "metadata[order_id]": str(order.id),
        }
        if order.email:
            form["customer_email"] = order.email

        for index, item in enumerate(order.items):
            name = None
            if item.dish is not None:
                name = pick_localized(item.dish, "name", order.locale)
            name = name or f"Dish {item.dish_id}"
            if item.size:
                name = f"{name} ({item.size})"
            prefix = f"line_items[{index}]"
            form[f"{prefix}[price_data][currency]"] = self.currency
            form[f"{prefix}[price_data][product_data][name]"] = name
            form[f"{prefix}[price_data][unit_amount]"] = str(to_minor_units(item.price))
            form[f"{prefix}[quantity]"] = str(item.quantity)
        return form

    async def _post(self, client: httpx.AsyncClient, form: Dict[str, str]) -> httpx.Response:
        return await client.post(
            f"{STRIPE_API_URL}/checkout/sessions",
            data=form,
            auth=(self.secret_key, ""),
            timeout=self.timeout,
        )

    async def create_checkout(
        self, order: Order, success_url: str, cancel_url: str
    ) -> CheckoutSession:
        form = self.build_form(order, success_url, cancel_url)
        try:
            if self.client is not None:
                response = await self._post(self.client, form)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._post(client, form)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(
                f"[PAYMENT] Stripe checkout failed for order {order.id} - "
                f"{type(e).__name__}: {e}",
                exc_info=True,
            )
            raise ServiceUnavailableError("Payment provider unavailable") from e

        data = response.json()
        logger.info(f"[PAYMENT] Stripe session {data.get('id')} for order {order.id}")
        return CheckoutSession(url=data["url"], reference=data["id"])
