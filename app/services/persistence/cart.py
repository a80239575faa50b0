"""Cart persistence service."""
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import select, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import classify_db_error
from app.db.models import CartItem


class CartPersistenceService:
    """Service for persisting session-scoped cart line items."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise classify_db_error(e) from e

    async def list_items(self, session_id: str) -> List[CartItem]:
        """Get all line items of a session in insertion order."""
        try:
            result = await self.db.execute(
                select(CartItem)
                .where(CartItem.session_id == session_id)
                .order_by(CartItem.id)
            )
        except SQLAlchemyError as e:
            raise classify_db_error(e) from e
        return list(result.scalars().all())

    async def get_item(self, session_id: str, item_id: str) -> Optional[CartItem]:
        """Get a line item by its public id within a session."""
        try:
            result = await self.db.execute(
                select(CartItem).where(
                    CartItem.session_id == session_id,
                    CartItem.item_id == item_id,
                )
            )
        except SQLAlchemyError as e:
            raise classify_db_error(e) from e
        return result.scalar_one_or_none()

    async def insert_item(
        self,
        session_id: str,
        dish_id: int,
        name: str,
        price: Decimal,
        quantity: int,
        image_src: Optional[str] = None,
        size: Optional[str] = None,
    ) -> CartItem:
        """Insert a new line item."""
        item = CartItem(
            session_id=session_id,
            dish_id=dish_id,
            name=name,
            price=price,
            quantity=quantity,
            image_src=image_src,
            size=size,
        )
        self.db.add(item)
        await self._commit()
        await self.db.refresh(item)
        return item

    async def set_quantity(self, item: CartItem, quantity: int) -> CartItem:
        """Set the quantity of an existing line item."""
        item.quantity = quantity
        await self._commit()
        return item

    async def delete_item(self, session_id: str, item_id: str) -> int:
        """Delete one line item. Returns the number of rows removed."""
        try:
            result = await self.db.execute(
                delete(CartItem).where(
                    CartItem.session_id == session_id,
                    CartItem.item_id == item_id,
                )
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise classify_db_error(e) from e
        await self._commit()
        return result.rowcount or 0

    async def delete_all(self, session_id: str) -> int:
        """Delete every line item of a session."""
        try:
            result = await self.db.execute(
                delete(CartItem).where(CartItem.session_id == session_id)
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise classify_db_error(e) from e
        await self._commit()
        return result.rowcount or 0
