"""Admin input models for menu management."""
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


class VariantInput(BaseModel):
    name_en: str = Field(min_length=1)
    name_nl: Optional[str] = None
    name_fr: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    image_url: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


class DishInput(BaseModel):
    """Dish fields editable from the admin panel."""

    name_en: str = Field(min_length=1)
    name_nl: Optional[str] = None
    name_fr: Optional[str] = None
    description_en: Optional[str] = None
    description_nl: Optional[str] = None
    description_fr: Optional[str] = None
    price: Decimal = Field(ge=0)
    image_url: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    quantity: Optional[str] = None
    weight: Optional[str] = None
    allergens: List[str] = []
    ingredients: List[str] = []
    is_active: bool = True
    category_id: Optional[int] = None
    slug: Optional[str] = None
    variants: List[VariantInput] = []


class CategoryInput(BaseModel):
    """Category fields editable from the admin panel."""

    name_en: str = Field(min_length=1)
    name_nl: Optional[str] = None
    name_fr: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True
    slug: Optional[str] = None
