"""Checkout flow: cart snapshot to order to payment."""
import logging
from typing import Optional, Tuple

from app.core.errors import ValidationError
from app.db.models import Order, OrderStatus
from app.services.cart.service import CartService, cart_total
from app.services.ordering.models import DeliveryInfo, OrderItemInput
from app.services.ordering.service import OrderService
from app.services.payment.base import PaymentProvider

logger = logging.getLogger(__name__)

PAYMENT_EVENTS = {
    "checkout.session.completed": OrderStatus.PAID,
    "checkout.session.expired": OrderStatus.CANCELLED,
    "payment.failed": OrderStatus.CANCELLED,
}


class CheckoutService:
    """Turns a shopper's cart into a PENDING order and a payment redirect."""

    def __init__(
        self,
        cart_service: CartService,
        order_service: OrderService,
        payment_provider: PaymentProvider,
    ):
        self.cart_service = cart_service
        self.order_service = order_service
        self.payment_provider = payment_provider

    async def start_checkout(
        self,
        session_id: str,
        delivery_info: DeliveryInfo,
        locale: str,
        base_url: str,
    ) -> Tuple[Order, str]:
        """
        Place an order for the session's cart and create a payment checkout.

        The cart is cleared once the order exists.

        Returns:
            Tuple of (order, payment redirect url)
        """
        lines = await self.cart_service.get(session_id)
        if not lines:
            raise ValidationError("Cart is empty")

        items = [
            OrderItemInput(
                dish_id=line.dish_id,
                quantity=line.quantity,
                price=line.price,
                size=line.size,
            )
            for line in lines
        ]
        order = await self.order_service.create(
            buyer_reference=session_id,
            items=items,
            total_amount=cart_total(lines),
            delivery_info=delivery_info,
            locale=locale,
        )

        base_url = base_url.rstrip("/")
        try:
            checkout = await self.payment_provider.create_checkout(
                order,
                success_url=f"{base_url}/{locale}/checkout/success",
                cancel_url=f"{base_url}/{locale}/checkout",
            )
        except Exception:
            await self._cancel_unpaid(order.id)
            raise
        order = await self.order_service.update_status(
            order.id, OrderStatus.PENDING, payment_reference=checkout.reference
        )
        await self.cart_service.clear(session_id)

        logger.info(f"[CHECKOUT] Order {order.id} placed, redirecting to payment")
        return order, checkout.url

    async def _cancel_unpaid(self, order_id: int) -> None:
        """Cancel an order whose payment checkout could not be created."""
        logger.warning(f"[CHECKOUT] Payment checkout failed, cancelling order {order_id}")
        try:
            await self.order_service.update_status(order_id, OrderStatus.CANCELLED)
        except Exception as e:
            logger.error(
                f"[CHECKOUT] Could not cancel order {order_id} - {type(e).__name__}: {e}",
                exc_info=True,
            )

    async def handle_payment_event(
        self,
        event_type: str,
        order_id: Optional[int] = None,
        reference: Optional[str] = None,
    ) -> Optional[Order]:
        """Apply a payment provider event to its order. Unknown events are ignored."""
        status = PAYMENT_EVENTS.get(event_type)
        if status is None:
            logger.info(f"[CHECKOUT] Ignoring payment event '{event_type}'")
            return None

        if order_id is None:
            if not reference:
                raise ValidationError("Payment event carries no order reference")
            order_id = (await self.order_service.get_by_payment_reference(reference)).id

        return await self.order_service.update_status(
            order_id, status, payment_reference=reference
        )
