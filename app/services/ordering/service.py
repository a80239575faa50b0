"""Order service."""
import logging
from decimal import Decimal
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Union
from pydantic import ValidationError as SchemaError

from app.core.errors import NotFoundError, ValidationError
from app.db.models import Order, OrderStatus
from app.services.cart.service import MAX_AMOUNT, MAX_QUANTITY, parse_price, to_cents
from app.services.ordering.models import DeliveryInfo, OrderItemInput
from app.services.persistence.orders import OrderPersistenceService

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.SHIPPED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def parse_status(value: Union[str, OrderStatus]) -> OrderStatus:
    """Parse a status name, case-insensitively."""
    try:
        return OrderStatus(str(value).strip().upper())
    except ValueError:
        raise ValidationError(
            f"Unknown order status '{value}'", fields={"status": "invalid"}
        )


def can_transition(current: Union[str, OrderStatus], new: Union[str, OrderStatus]) -> bool:
    """Whether an order in ``current`` may move to ``new``."""
    return parse_status(new) in ALLOWED_TRANSITIONS[parse_status(current)]


def order_total(items: Iterable[OrderItemInput]) -> Decimal:
    """Sum of unit price times quantity, rounded to cents."""
    return to_cents(
        sum((item.price * item.quantity for item in items), Decimal("0"))
    )


class OrderService:
    """Creates orders from a finalized cart and drives their status."""

    def __init__(self, persistence: OrderPersistenceService):
        self.persistence = persistence

    def _normalize_items(
        self, items: Iterable[Union[OrderItemInput, Dict[str, Any]]]
    ) -> List[OrderItemInput]:
        normalized = []
        for index, item in enumerate(items):
            if not isinstance(item, OrderItemInput):
                try:
                    item = OrderItemInput(**item)
                except SchemaError as e:
                    raise ValidationError(
                        "Invalid order item", fields={f"items.{index}": str(e)}
                    ) from e
            if not 1 <= item.quantity <= MAX_QUANTITY:
                raise ValidationError(
                    f"Order item quantity must be between 1 and {MAX_QUANTITY}",
                    fields={f"items.{index}.quantity": "invalid"},
                )
            item.price = parse_price(item.price, field=f"items.{index}.price")
            normalized.append(item)
        return normalized

    async def create(
        self,
        buyer_reference: Optional[str],
        items: Iterable[Union[OrderItemInput, Dict[str, Any]]],
        total_amount: Any,
        delivery_info: Optional[Union[DeliveryInfo, Dict[str, Any]]] = None,
        locale: Optional[str] = None,
    ) -> Order:
        """
        Persist a new PENDING order with its items.

        Args:
            buyer_reference: Opaque buyer/session reference
            items: Order lines with unit price snapshots
            total_amount: Total declared by the caller
            delivery_info: Optional delivery contact details
            locale: Locale the order was placed in

        Returns:
            The created Order with items loaded

        Raises:
            ValidationError: Empty item list or total mismatch
        """
        order_items = self._normalize_items(items)
        if not order_items:
            raise ValidationError("Order must contain at least one item")

        declared = parse_price(total_amount, field="totalAmount")
        computed = order_total(order_items)
        if computed > MAX_AMOUNT:
            raise ValidationError(
                f"Order total must not exceed {MAX_AMOUNT}",
                fields={"totalAmount": "too_large"},
            )
        if computed != declared:
            logger.warning(
                f"[ORDERS] Total mismatch - declared {declared}, computed {computed}"
            )
            raise ValidationError(
                f"Order total {declared} does not match item total {computed}",
                fields={"totalAmount": "mismatch"},
            )

        if isinstance(delivery_info, dict):
            try:
                delivery_info = DeliveryInfo.model_validate(delivery_info)
            except SchemaError as e:
                raise ValidationError(
                    "Invalid delivery details", fields={"deliveryInfo": str(e)}
                ) from e
        if isinstance(delivery_info, DeliveryInfo):
            delivery_info = delivery_info.model_dump()

        order = await self.persistence.create_order_with_items(
            user_id=buyer_reference,
            total_amount=computed,
            items=[item.model_dump() for item in order_items],
            delivery_info=delivery_info,
            locale=locale,
        )
        logger.info(
            f"[ORDERS] Created order {order.id} - {len(order_items)} items, total {computed}"
        )
        return order

    async def update_status(
        self,
        order_id: int,
        new_status: Union[str, OrderStatus],
        payment_reference: Optional[str] = None,
    ) -> Order:
        """Move an order along the status graph."""
        status = parse_status(new_status)
        order = await self.get_by_id(order_id)
        current = parse_status(order.status)

        if status != current and status not in ALLOWED_TRANSITIONS[current]:
            raise ValidationError(
                f"Cannot change order status from {current} to {status}",
                fields={"status": "invalid_transition"},
            )

        if status == current and not payment_reference:
            return order

        logger.info(f"[ORDERS] Order {order_id} status {current} -> {status}")
        return await self.persistence.set_status(order, status.value, payment_reference)

    async def get_by_id(self, order_id: int) -> Order:
        order = await self.persistence.get_order_by_id(order_id)
        if order is None:
            raise NotFoundError("Order")
        return order

    async def get_by_email(self, email: str) -> List[Order]:
        """Orders placed with exactly this email, newest first."""
        if not email:
            return []
        return await self.persistence.get_orders_by_email(email)

    async def get_by_buyer(self, buyer_reference: str) -> List[Order]:
        return await self.persistence.get_orders_by_user_id(buyer_reference)

    async def get_by_payment_reference(self, reference: str) -> Order:
        order = await self.persistence.get_order_by_payment_reference(reference)
        if order is None:
            raise NotFoundError("Order")
        return order

    async def list_orders(
        self, status: Optional[str] = None, limit: int = 100
    ) -> List[Order]:
        return await self.persistence.list_orders(
            status=parse_status(status).value if status else None, limit=limit
        )
