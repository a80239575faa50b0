"""Database models."""
import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class OrderStatus(str, Enum):
    """Order lifecycle statuses."""

    PENDING = "PENDING"
    PAID = "PAID"
    PREPARING = "PREPARING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"

    def __str__(self) -> str:
        return self.value


def new_item_id() -> str:
    return uuid.uuid4().hex


class Category(Base):
    """Menu category."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    name_en = Column(String, nullable=False)
    name_nl = Column(String, nullable=True)
    name_fr = Column(String, nullable=True)
    slug = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    dishes = relationship("Dish", back_populates="category")


class Dish(Base):
    """Menu dish with per-locale text."""

    __tablename__ = "dishes"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String, unique=True, index=True, nullable=True)
    name = Column(String, nullable=False)
    name_en = Column(String, nullable=False)
    name_nl = Column(String, nullable=True)
    name_fr = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    description_en = Column(Text, nullable=True)
    description_nl = Column(Text, nullable=True)
    description_fr = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    image_url = Column(String, nullable=True)
    rating = Column(Float, nullable=True)
    quantity = Column(String, nullable=True)  # Portion description, e.g. "4 pieces"
    weight = Column(String, nullable=True)
    allergens = Column(JSON, nullable=True)  # List of allergen strings
    ingredients = Column(JSON, nullable=True)  # List of ingredient strings
    is_active = Column(Boolean, default=True, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    # Relationships
    category = relationship("Category", back_populates="dishes")
    variants = relationship(
        "DishVariant",
        back_populates="dish",
        cascade="all, delete-orphan",
        order_by="DishVariant.sort_order",
    )


class DishVariant(Base):
    """Named sub-option of a dish with an optional price override."""

    __tablename__ = "dish_variants"

    id = Column(Integer, primary_key=True, index=True)
    dish_id = Column(Integer, ForeignKey("dishes.id"), nullable=False)
    name_en = Column(String, nullable=False)
    name_nl = Column(String, nullable=True)
    name_fr = Column(String, nullable=True)
    price = Column(Numeric(10, 2), nullable=True)
    image_url = Column(String, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    dish = relationship("Dish", back_populates="variants")


class CartItem(Base):
    """Line item in a shopper's session cart."""

    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(String, unique=True, index=True, nullable=False, default=new_item_id)
    session_id = Column(String, index=True, nullable=False)
    dish_id = Column(Integer, nullable=False)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    image_src = Column(String, nullable=True)
    size = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Order(Base):
    """Order model."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String, default=OrderStatus.PENDING.value, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    email = Column(String, index=True, nullable=True)
    phone = Column(String, nullable=True)
    address = Column(String, nullable=True)
    city = Column(String, nullable=True)
    postal_code = Column(String, nullable=True)
    country = Column(String, nullable=True)
    delivery_instructions = Column(Text, nullable=True)
    locale = Column(String, nullable=True)
    payment_reference = Column(String, index=True, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    # Relationships
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    """Order item with the unit price captured at order time."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    dish_id = Column(Integer, ForeignKey("dishes.id"), nullable=False)
    variant_id = Column(Integer, ForeignKey("dish_variants.id"), nullable=True)
    quantity = Column(Integer, default=1, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    size = Column(String, nullable=True)

    # Relationships
    order = relationship("Order", back_populates="items")
    dish = relationship("Dish")
