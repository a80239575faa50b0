"""Menu API endpoints."""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request

from app.core.config import settings
from app.core.dependencies import get_menu_repository
from app.core.errors import AppError, NotFoundError
from app.core.i18n import resolve_locale
from app.services.menu.base import LocalizedCategory, LocalizedDish
from app.services.menu.repository import MenuRepository


router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/menu", response_model=List[LocalizedDish])
async def get_menu(
    request: Request,
    locale: Optional[str] = None,
    category_id: Optional[int] = Query(default=None, alias="categoryId"),
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Get the active dishes of the menu in one locale."""
    locale = resolve_locale(locale, settings.default_locale)
    logger.info(
        f"[MENU] Request received - locale: {locale}, category: {category_id}, "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )
    try:
        dishes = await menu_repository.get_dishes(
            category_id=category_id, is_active=True, locale=locale
        )
        logger.info(f"[MENU] Menu loaded - {len(dishes)} dishes")
        return dishes
    except AppError:
        raise
    except Exception as e:
        logger.error(f"[MENU] Error fetching menu - Error: {type(e).__name__}: {e}", exc_info=True)
        raise AppError("Failed to fetch menu") from e


@router.get("/api/menu/{slug}", response_model=LocalizedDish)
async def get_dish(
    slug: str,
    locale: Optional[str] = None,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Get one active dish by slug."""
    dish = await menu_repository.get_dish_by_slug(
        slug, resolve_locale(locale, settings.default_locale)
    )
    if dish is None or not dish.is_active:
        raise NotFoundError("Dish")
    return dish


@router.get("/api/categories", response_model=List[LocalizedCategory])
async def get_categories(
    locale: Optional[str] = None,
    menu_repository: MenuRepository = Depends(get_menu_repository),
):
    """Get the active categories in one locale."""
    return await menu_repository.get_categories(
        resolve_locale(locale, settings.default_locale)
    )
