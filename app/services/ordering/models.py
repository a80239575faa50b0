"""Order models."""
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class OrderItemInput(BaseModel):
    """One line of an order being created."""

    dish_id: int
    variant_id: Optional[int] = None
    quantity: int = 1
    price: Decimal
    size: Optional[str] = None


class DeliveryInfo(BaseModel):
    """Delivery contact details attached to an order."""

    first_name: Optional[str] = Field(default=None, alias="firstName")
    last_name: Optional[str] = Field(default=None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = Field(default=None, alias="postalCode")
    country: Optional[str] = None
    delivery_instructions: Optional[str] = Field(
        default=None, alias="deliveryInstructions"
    )

    class Config:
        populate_by_name = True


class CheckoutDeliveryInfo(DeliveryInfo):
    """Delivery details as required by the checkout form."""

    first_name: str = Field(alias="firstName", min_length=1)
    last_name: str = Field(alias="lastName", min_length=1)
    email: EmailStr
    phone: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    postal_code: str = Field(alias="postalCode", min_length=1)
    country: Optional[str] = "Belgium"
