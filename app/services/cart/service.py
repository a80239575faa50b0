"""Shopping cart service."""
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional

from app.core.errors import NotFoundError, ValidationError
from app.services.cart.models import CartLine
from app.services.persistence.cart import CartPersistenceService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# Largest values the Numeric(10, 2) and INTEGER columns hold
MAX_AMOUNT = Decimal("99999999.99")
MAX_QUANTITY = 2**31 - 1


def to_cents(value: Decimal) -> Decimal:
    """Round a money amount half-up to two decimals."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_price(value: Any, field: str = "price") -> Decimal:
    """Parse a unit price into a non-negative amount rounded to cents."""
    if value is None or isinstance(value, bool):
        raise ValidationError("Price is required", fields={field: "required"})
    try:
        price = Decimal(str(value).strip())
        if not price.is_finite() or price < 0:
            raise ValidationError(
                "Price must be a non-negative number", fields={field: "invalid"}
            )
        if price > MAX_AMOUNT:
            raise ValidationError(
                f"Price must not exceed {MAX_AMOUNT}", fields={field: "too_large"}
            )
        return to_cents(price)
    except (InvalidOperation, ValueError):
        raise ValidationError("Price must be a number", fields={field: "invalid"})


def parse_quantity(value: Any) -> int:
    """Parse a quantity into an integer. Sign is checked by the caller."""
    if value is None or isinstance(value, bool):
        raise ValidationError("Quantity is required", fields={"quantity": "required"})
    if isinstance(value, int):
        count = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(
                "Quantity must be a whole number", fields={"quantity": "invalid"}
            )
        count = int(value)
    else:
        try:
            count = int(str(value).strip())
        except ValueError:
            raise ValidationError(
                "Quantity must be a whole number", fields={"quantity": "invalid"}
            )
    if count > MAX_QUANTITY:
        raise ValidationError(
            f"Quantity must not exceed {MAX_QUANTITY}", fields={"quantity": "too_large"}
        )
    return count


def cart_total(items: Iterable[CartLine]) -> Decimal:
    """Sum of line subtotals."""
    return to_cents(sum((item.subtotal for item in items), Decimal("0")))


class CartService:
    """
    Session-scoped shopping cart.

    Every operation takes the shopper session id explicitly. Adding a dish
    always creates a new line, even when the same dish and size are
    already in the cart.
    """

    def __init__(self, persistence: CartPersistenceService):
        self.persistence = persistence

    async def get(self, session_id: Optional[str]) -> List[CartLine]:
        """Get the cart of a session; empty when there is none."""
        if not session_id:
            return []
        records = await self.persistence.list_items(session_id)
        return [CartLine.from_record(record) for record in records]

    async def add(
        self,
        session_id: str,
        dish_id: int,
        name: str,
        price: Any,
        quantity: Any,
        image_src: Optional[str] = None,
        size: Optional[str] = None,
    ) -> List[CartLine]:
        """Append a new line item and return the updated cart."""
        unit_price = parse_price(price)
        count = parse_quantity(quantity)
        if count < 1:
            raise ValidationError(
                "Quantity must be a positive integer", fields={"quantity": "invalid"}
            )
        if not name or not str(name).strip():
            raise ValidationError("Name is required", fields={"name": "required"})

        item = await self.persistence.insert_item(
            session_id=session_id,
            dish_id=dish_id,
            name=str(name).strip(),
            price=unit_price,
            quantity=count,
            image_src=image_src,
            size=size,
        )
        logger.debug(
            f"[CART] Added line {item.item_id} (dish {dish_id} x{count}) "
            f"to session {session_id[:8]}"
        )
        return await self.get(session_id)

    async def update_quantity(
        self, session_id: str, item_id: str, quantity: Any
    ) -> List[CartLine]:
        """Set a line's quantity; zero or less removes the line."""
        count = parse_quantity(quantity)
        if count <= 0:
            return await self.remove(session_id, item_id)

        item = await self.persistence.get_item(session_id, item_id)
        if item is None:
            raise NotFoundError("Cart item")

        await self.persistence.set_quantity(item, count)
        return await self.get(session_id)

    async def remove(self, session_id: str, item_id: str) -> List[CartLine]:
        """Delete a line if present."""
        removed = await self.persistence.delete_item(session_id, item_id)
        if not removed:
            logger.debug(f"[CART] Remove of unknown line {item_id} ignored")
        return await self.get(session_id)

    async def clear(self, session_id: str) -> List[CartLine]:
        """Empty the cart of a session."""
        await self.persistence.delete_all(session_id)
        return []
