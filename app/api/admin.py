"""Admin panel API: dish, category and order management."""
import logging
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.api.auth import require_admin
from app.api.orders import OrderResponse, order_to_response
from app.core.dependencies import get_dish_store, get_order_service
from app.db.models import Category, Dish
from app.services.menu.models import CategoryInput, DishInput
from app.services.ordering.service import OrderService
from app.services.persistence.dishes import DishPersistenceService


router = APIRouter(prefix="/api/admin", dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


class AdminVariantResponse(BaseModel):
    id: int
    name_en: str
    name_nl: Optional[str] = None
    name_fr: Optional[str] = None
    price: Optional[float] = None
    image_url: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True


class AdminCategoryResponse(BaseModel):
    """Category with every locale's text."""
    id: int
    slug: str
    name_en: str
    name_nl: Optional[str] = None
    name_fr: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True

    class Config:
        from_attributes = True


class AdminDishResponse(BaseModel):
    """Dish with every locale's text, for editing."""
    id: int
    slug: Optional[str] = None
    name_en: str
    name_nl: Optional[str] = None
    name_fr: Optional[str] = None
    description_en: Optional[str] = None
    description_nl: Optional[str] = None
    description_fr: Optional[str] = None
    price: float
    image_url: Optional[str] = None
    rating: Optional[float] = None
    quantity: Optional[str] = None
    weight: Optional[str] = None
    allergens: List[str] = []
    ingredients: List[str] = []
    is_active: bool
    category_id: Optional[int] = None
    variants: List[AdminVariantResponse] = []
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, dish: Dish) -> "AdminDishResponse":
        return cls(
            id=dish.id,
            slug=dish.slug,
            name_en=dish.name_en,
            name_nl=dish.name_nl,
            name_fr=dish.name_fr,
            description_en=dish.description_en,
            description_nl=dish.description_nl,
            description_fr=dish.description_fr,
            price=float(dish.price),
            image_url=dish.image_url,
            rating=dish.rating,
            quantity=dish.quantity,
            weight=dish.weight,
            allergens=dish.allergens or [],
            ingredients=dish.ingredients or [],
            is_active=dish.is_active,
            category_id=dish.category_id,
            variants=[
                AdminVariantResponse(
                    id=variant.id,
                    name_en=variant.name_en,
                    name_nl=variant.name_nl,
                    name_fr=variant.name_fr,
                    price=float(variant.price) if variant.price is not None else None,
                    image_url=variant.image_url,
                    sort_order=variant.sort_order,
                    is_active=variant.is_active,
                )
                for variant in dish.variants
            ],
            created_at=dish.created_at,
            updated_at=dish.updated_at,
        )


class StatusUpdateRequest(BaseModel):
    status: str
    payment_reference: Optional[str] = None


# Dishes

@router.get("/dishes", response_model=List[AdminDishResponse])
async def list_dishes(store: DishPersistenceService = Depends(get_dish_store)):
    """List every dish, active or not."""
    dishes = await store.list_dishes()
    logger.info(f"[ADMIN] Listed {len(dishes)} dishes")
    return [AdminDishResponse.from_record(dish) for dish in dishes]


@router.post("/dishes", response_model=AdminDishResponse, status_code=201)
async def create_dish(
    data: DishInput, store: DishPersistenceService = Depends(get_dish_store)
):
    """Create a dish."""
    dish = await store.create_dish(data)
    return AdminDishResponse.from_record(dish)


@router.get("/dishes/{dish_id}", response_model=AdminDishResponse)
async def get_dish(dish_id: int, store: DishPersistenceService = Depends(get_dish_store)):
    return AdminDishResponse.from_record(await store.get_dish(dish_id))


@router.put("/dishes/{dish_id}", response_model=AdminDishResponse)
async def update_dish(
    dish_id: int,
    data: DishInput,
    store: DishPersistenceService = Depends(get_dish_store),
):
    """Replace a dish's editable fields."""
    dish = await store.update_dish(dish_id, data)
    return AdminDishResponse.from_record(dish)


@router.delete("/dishes/{dish_id}")
async def delete_dish(dish_id: int, store: DishPersistenceService = Depends(get_dish_store)):
    await store.delete_dish(dish_id)
    return {"success": True, "message": f"Dish {dish_id} deleted"}


# Categories

@router.get("/categories", response_model=List[AdminCategoryResponse])
async def list_categories(store: DishPersistenceService = Depends(get_dish_store)):
    categories = await store.list_categories()
    return [AdminCategoryResponse.model_validate(category) for category in categories]


@router.post("/categories", response_model=AdminCategoryResponse, status_code=201)
async def create_category(
    data: CategoryInput, store: DishPersistenceService = Depends(get_dish_store)
):
    category: Category = await store.create_category(data)
    return AdminCategoryResponse.model_validate(category)


@router.put("/categories/{category_id}", response_model=AdminCategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryInput,
    store: DishPersistenceService = Depends(get_dish_store),
):
    category = await store.update_category(category_id, data)
    return AdminCategoryResponse.model_validate(category)


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: int, store: DishPersistenceService = Depends(get_dish_store)
):
    """Delete a category; its dishes stay on the menu uncategorized."""
    await store.delete_category(category_id)
    return {"success": True, "message": f"Category {category_id} deleted"}


# Orders

@router.get("/orders", response_model=List[OrderResponse])
async def list_orders(
    status: Optional[str] = None,
    limit: int = 100,
    order_service: OrderService = Depends(get_order_service),
):
    """List orders newest first, optionally by status."""
    orders = await order_service.list_orders(status=status, limit=limit)
    logger.info(f"[ADMIN] Listed {len(orders)} orders (status={status})")
    return [order_to_response(order) for order in orders]


@router.put("/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: int,
    body: StatusUpdateRequest,
    order_service: OrderService = Depends(get_order_service),
):
    """Move an order to a new status along the allowed transitions."""
    order = await order_service.update_status(
        order_id, body.status, payment_reference=body.payment_reference
    )
    return order_to_response(order)
