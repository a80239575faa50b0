"""Menu repository."""
import logging
from typing import List, Optional
from sqlalchemy import select, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import classify_db_error
from app.core.i18n import resolve_locale
from app.db.models import Category, Dish
from app.services.menu.base import LocalizedCategory, LocalizedDish

logger = logging.getLogger(__name__)


class MenuRepository:
    """Read-side access to the menu, localized per request."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _dish_query(self):
        return select(Dish).options(
            selectinload(Dish.category),
            selectinload(Dish.variants),
        )

    async def _scalars(self, query) -> list:
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error(f"[MENU] Query failed - {type(e).__name__}: {e}")
            raise classify_db_error(e) from e
        return list(result.scalars().all())

    async def get_dishes(
        self,
        category_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        locale: Optional[str] = None,
    ) -> List[LocalizedDish]:
        """Get dishes newest first, optionally filtered."""
        locale = resolve_locale(locale)
        query = self._dish_query()
        if category_id is not None:
            query = query.where(Dish.category_id == category_id)
        if is_active is not None:
            query = query.where(Dish.is_active == is_active)
        dishes = await self._scalars(query.order_by(desc(Dish.created_at), desc(Dish.id)))
        logger.debug(f"[MENU] Found {len(dishes)} dishes (locale={locale})")
        return [LocalizedDish.from_record(dish, locale) for dish in dishes]

    async def get_dish_by_slug(
        self, slug: str, locale: Optional[str] = None
    ) -> Optional[LocalizedDish]:
        """Get a dish by slug."""
        dishes = await self._scalars(self._dish_query().where(Dish.slug == slug))
        if not dishes:
            return None
        return LocalizedDish.from_record(dishes[0], resolve_locale(locale))

    async def get_dish_by_id(
        self, dish_id: int, locale: Optional[str] = None
    ) -> Optional[LocalizedDish]:
        """Get a dish by id."""
        dishes = await self._scalars(self._dish_query().where(Dish.id == dish_id))
        if not dishes:
            return None
        return LocalizedDish.from_record(dishes[0], resolve_locale(locale))

    async def get_categories(self, locale: Optional[str] = None) -> List[LocalizedCategory]:
        """Get active categories sorted by name."""
        locale = resolve_locale(locale)
        categories = await self._scalars(
            select(Category).where(Category.is_active.is_(True)).order_by(Category.name)
        )
        return [LocalizedCategory.from_record(category, locale) for category in categories]
