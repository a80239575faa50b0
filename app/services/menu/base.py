"""Localized menu view models."""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel

from app.core.i18n import pick_localized


class LocalizedCategory(BaseModel):
    """Category as shown in one locale."""

    id: int
    name: str
    slug: str
    description: Optional[str] = None
    image_url: Optional[str] = None

    @classmethod
    def from_record(cls, category, locale: str) -> "LocalizedCategory":
        return cls(
            id=category.id,
            name=pick_localized(category, "name", locale) or "",
            slug=category.slug,
            description=category.description,
            image_url=category.image_url,
        )


class LocalizedVariant(BaseModel):
    """Dish variant as shown in one locale."""

    id: int
    name: str
    price: Optional[float] = None
    image_url: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_record(cls, variant, locale: str) -> "LocalizedVariant":
        return cls(
            id=variant.id,
            name=pick_localized(variant, "name", locale) or "",
            price=float(variant.price) if variant.price is not None else None,
            image_url=variant.image_url,
            is_active=variant.is_active,
        )


class LocalizedDish(BaseModel):
    """Dish as shown in one locale."""

    id: int
    slug: Optional[str] = None
    name: str
    description: Optional[str] = None
    price: float
    image_url: Optional[str] = None
    rating: float = 0
    quantity: Optional[str] = None
    weight: Optional[str] = None
    allergens: List[str] = []
    ingredients: List[str] = []
    variants: List[LocalizedVariant] = []
    category: Optional[LocalizedCategory] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, dish, locale: str) -> "LocalizedDish":
        return cls(
            id=dish.id,
            slug=dish.slug,
            name=pick_localized(dish, "name", locale) or "",
            description=pick_localized(dish, "description", locale),
            price=float(dish.price),
            image_url=dish.image_url,
            rating=dish.rating or 0,
            quantity=dish.quantity,
            weight=dish.weight,
            allergens=dish.allergens or [],
            ingredients=dish.ingredients or [],
            variants=[
                LocalizedVariant.from_record(variant, locale)
                for variant in dish.variants
                if variant.is_active
            ],
            category=(
                LocalizedCategory.from_record(dish.category, locale)
                if dish.category is not None
                else None
            ),
            is_active=dish.is_active,
            created_at=dish.created_at,
            updated_at=dish.updated_at,
        )
