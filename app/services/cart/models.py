"""Cart models."""
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel


class CartLine(BaseModel):
    """Snapshot of one cart line item."""

    id: str
    dish_id: int
    name: str
    price: Decimal
    quantity: int
    image_src: Optional[str] = None
    size: Optional[str] = None

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def from_record(cls, record) -> "CartLine":
        return cls(
            id=record.item_id,
            dish_id=record.dish_id,
            name=record.name,
            price=Decimal(record.price),
            quantity=record.quantity,
            image_src=record.image_src,
            size=record.size,
        )
