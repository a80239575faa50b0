"""Order persistence service."""
import logging
from decimal import Decimal
from typing import Optional, Dict, Any, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from app.core.errors import classify_db_error
from app.db.models import Order, OrderItem, OrderStatus

logger = logging.getLogger(__name__)

DELIVERY_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "address",
    "city",
    "postal_code",
    "country",
    "delivery_instructions",
)


class OrderPersistenceService:
    """Service for persisting order data."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _with_items(self):
        return select(Order).options(
            selectinload(Order.items).selectinload(OrderItem.dish)
        )

    def build_order_item(self, order_id: int, item_data: Dict[str, Any]) -> OrderItem:
        """Build an order item row from plain item data."""
        return OrderItem(
            order_id=order_id,
            dish_id=item_data.get("dish_id"),
            variant_id=item_data.get("variant_id"),
            quantity=item_data.get("quantity", 1),
            price=item_data.get("price"),
            size=item_data.get("size"),
        )

    async def create_order_with_items(
        self,
        user_id: Optional[str],
        total_amount: Decimal,
        items: List[Dict[str, Any]],
        delivery_info: Optional[Dict[str, Any]] = None,
        locale: Optional[str] = None,
    ) -> Order:
        """
        Create an order header and all of its items in one transaction.

        Either the header and every item are committed, or nothing is.
        """
        delivery_info = delivery_info or {}
        try:
            order = Order(
                user_id=user_id,
                total_amount=total_amount,
                status=OrderStatus.PENDING.value,
                locale=locale,
                **{field: delivery_info.get(field) for field in DELIVERY_FIELDS},
            )
            self.db.add(order)
            await self.db.flush()

            for item_data in items:
                self.db.add(self.build_order_item(order.id, item_data))
                await self.db.flush()

            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"[ORDERS] Order creation rolled back - {type(e).__name__}: {e}"
            )
            raise classify_db_error(e) from e
        except Exception:
            await self.db.rollback()
            raise

        return await self.get_order_by_id(order.id)

    async def get_order_by_id(self, order_id: int) -> Optional[Order]:
        """Get order by ID with items."""
        try:
            result = await self.db.execute(
                self._with_items()
                .where(Order.id == order_id)
                .execution_options(populate_existing=True)
            )
        except SQLAlchemyError as e:
            raise classify_db_error(e) from e
        return result.scalar_one_or_none()

    async def get_order_by_payment_reference(self, reference: str) -> Optional[Order]:
        """Get the order carrying a payment provider reference."""
        try:
            result = await self.db.execute(
                self._with_items().where(Order.payment_reference == reference)
            )
        except SQLAlchemyError as e:
            raise classify_db_error(e) from e
        return result.scalars().first()

    async def get_orders_by_email(self, email: str) -> List[Order]:
        """Get orders whose contact email matches exactly, newest first."""
        try:
            result = await self.db.execute(
                self._with_items()
                .where(Order.email == email)
                .order_by(desc(Order.created_at), desc(Order.id))
            )
        except SQLAlchemyError as e:
            raise classify_db_error(e) from e
        return list(result.scalars().all())

    async def get_orders_by_user_id(self, user_id: str) -> List[Order]:
        """Get orders of a buyer reference, newest first."""
        try:
            result = await self.db.execute(
                self._with_items()
                .where(Order.user_id == user_id)
                .order_by(desc(Order.created_at), desc(Order.id))
            )
        except SQLAlchemyError as e:
            raise classify_db_error(e) from e
        return list(result.scalars().all())

    async def list_orders(
        self, status: Optional[str] = None, limit: int = 100
    ) -> List[Order]:
        """List orders newest first, optionally filtered by status."""
        query = self._with_items()
        if status:
            query = query.where(Order.status == status)
        try:
            result = await self.db.execute(
                query.order_by(desc(Order.created_at), desc(Order.id)).limit(limit)
            )
        except SQLAlchemyError as e:
            raise classify_db_error(e) from e
        return list(result.scalars().all())

    async def set_status(
        self, order: Order, status: str, payment_reference: Optional[str] = None
    ) -> Order:
        """Write the status and, when given, the payment reference."""
        order.status = status
        if payment_reference:
            order.payment_reference = payment_reference
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise classify_db_error(e) from e
        return await self.get_order_by_id(order.id)
