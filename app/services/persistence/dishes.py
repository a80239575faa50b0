"""Dish and category persistence service."""
import logging
from typing import List, Optional, Type
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import NotFoundError, ValidationError, classify_db_error
from app.core.i18n import generate_slug
from app.db.models import Category, Dish, DishVariant
from app.services.menu.models import CategoryInput, DishInput

logger = logging.getLogger(__name__)


class DishPersistenceService:
    """CRUD for dishes, their variants, and categories."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise classify_db_error(e) from e

    async def _execute(self, query):
        try:
            return await self.db.execute(query)
        except SQLAlchemyError as e:
            raise classify_db_error(e) from e

    async def unique_slug(
        self, model: Type, text: str, exclude_id: Optional[int] = None
    ) -> str:
        """Slug for ``text`` that no other row of ``model`` uses yet."""
        base_slug = generate_slug(text)
        if not base_slug:
            raise ValidationError("Cannot build a slug from an empty name")

        slug = base_slug
        counter = 1
        while True:
            query = select(model.id).where(model.slug == slug)
            if exclude_id is not None:
                query = query.where(model.id != exclude_id)
            result = await self._execute(query)
            if result.first() is None:
                return slug
            slug = f"{base_slug}-{counter}"
            counter += 1

    # Dishes

    async def list_dishes(self) -> List[Dish]:
        result = await self._execute(
            select(Dish)
            .options(selectinload(Dish.category), selectinload(Dish.variants))
            .order_by(Dish.id)
        )
        return list(result.scalars().all())

    async def get_dish(self, dish_id: int) -> Dish:
        result = await self._execute(
            select(Dish)
            .where(Dish.id == dish_id)
            .options(selectinload(Dish.category), selectinload(Dish.variants))
            .execution_options(populate_existing=True)
        )
        dish = result.scalar_one_or_none()
        if dish is None:
            raise NotFoundError("Dish")
        return dish

    async def _check_category(self, category_id: Optional[int]) -> None:
        if category_id is None:
            return
        result = await self._execute(select(Category.id).where(Category.id == category_id))
        if result.first() is None:
            raise ValidationError(
                "Category does not exist", fields={"category_id": "invalid"}
            )

    def _apply_dish_fields(self, dish: Dish, data: DishInput) -> None:
        dish.name = data.name_en
        dish.name_en = data.name_en
        dish.name_nl = data.name_nl
        dish.name_fr = data.name_fr
        dish.description = data.description_en
        dish.description_en = data.description_en
        dish.description_nl = data.description_nl
        dish.description_fr = data.description_fr
        dish.price = data.price
        dish.image_url = data.image_url
        dish.rating = data.rating
        dish.quantity = data.quantity
        dish.weight = data.weight
        dish.allergens = list(data.allergens)
        dish.ingredients = list(data.ingredients)
        dish.is_active = data.is_active
        dish.category_id = data.category_id
        dish.variants = [
            DishVariant(**variant.model_dump()) for variant in data.variants
        ]

    async def create_dish(self, data: DishInput) -> Dish:
        """Create a dish with its variants."""
        await self._check_category(data.category_id)
        dish = Dish(variants=[])
        self._apply_dish_fields(dish, data)
        dish.slug = await self.unique_slug(Dish, data.slug or data.name_en)
        self.db.add(dish)
        await self._commit()
        logger.info(f"[ADMIN] Created dish {dish.id} ({dish.slug})")
        return await self.get_dish(dish.id)

    async def update_dish(self, dish_id: int, data: DishInput) -> Dish:
        """Replace a dish's fields; variants are replaced as a whole."""
        dish = await self.get_dish(dish_id)
        await self._check_category(data.category_id)
        self._apply_dish_fields(dish, data)
        if data.slug:
            dish.slug = await self.unique_slug(Dish, data.slug, exclude_id=dish.id)
        elif not dish.slug:
            dish.slug = await self.unique_slug(Dish, data.name_en, exclude_id=dish.id)
        await self._commit()
        logger.info(f"[ADMIN] Updated dish {dish.id}")
        return await self.get_dish(dish.id)

    async def delete_dish(self, dish_id: int) -> None:
        dish = await self.get_dish(dish_id)
        await self.db.delete(dish)
        await self._commit()
        logger.info(f"[ADMIN] Deleted dish {dish_id}")

    # Categories

    async def list_categories(self) -> List[Category]:
        result = await self._execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())

    async def get_category(self, category_id: int) -> Category:
        result = await self._execute(select(Category).where(Category.id == category_id))
        category = result.scalar_one_or_none()
        if category is None:
            raise NotFoundError("Category")
        return category

    def _apply_category_fields(self, category: Category, data: CategoryInput) -> None:
        category.name = data.name_en
        category.name_en = data.name_en
        category.name_nl = data.name_nl
        category.name_fr = data.name_fr
        category.description = data.description
        category.image_url = data.image_url
        category.is_active = data.is_active

    async def create_category(self, data: CategoryInput) -> Category:
        category = Category()
        self._apply_category_fields(category, data)
        category.slug = await self.unique_slug(Category, data.slug or data.name_en)
        self.db.add(category)
        await self._commit()
        logger.info(f"[ADMIN] Created category {category.id} ({category.slug})")
        return category

    async def update_category(self, category_id: int, data: CategoryInput) -> Category:
        category = await self.get_category(category_id)
        self._apply_category_fields(category, data)
        if data.slug:
            category.slug = await self.unique_slug(
                Category, data.slug, exclude_id=category.id
            )
        await self._commit()
        return category

    async def delete_category(self, category_id: int) -> None:
        """Delete a category; its dishes become uncategorized."""
        category = await self.get_category(category_id)
        result = await self._execute(select(Dish).where(Dish.category_id == category_id))
        for dish in result.scalars().all():
            dish.category_id = None
        await self.db.delete(category)
        await self._commit()
        logger.info(f"[ADMIN] Deleted category {category_id}")
