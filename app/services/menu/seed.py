"""Menu seeding from the bundled YAML file.

Usage:
    python -m app.services.menu.seed                 # seed everything
    python -m app.services.menu.seed starters        # only one section
    python -m app.services.menu.seed biryani curries # several sections

Sections are the category keys of the YAML file. Seeding is idempotent:
categories and dishes are matched by slug and only created when missing.
"""
import asyncio
import logging
import sys
from pathlib import Path
from typing import Dict, Iterable, Optional

import yaml
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.i18n import generate_slug
from app.db.models import Category, Dish
from app.services.menu.models import CategoryInput, DishInput
from app.services.persistence.dishes import DishPersistenceService

logger = logging.getLogger(__name__)

DEFAULT_MENU_FILE = Path(__file__).parent / "data" / "menu.yaml"


def load_menu_file(menu_file: Optional[str] = None) -> Dict:
    """Load the seed menu from YAML."""
    path = Path(menu_file) if menu_file else DEFAULT_MENU_FILE
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


async def _find_by_slug(db: AsyncSession, model, slug: str):
    result = await db.execute(select(model).where(model.slug == slug))
    return result.scalar_one_or_none()


async def seed_menu(
    db: AsyncSession,
    menu_file: Optional[str] = None,
    sections: Optional[Iterable[str]] = None,
) -> Dict[str, int]:
    """
    Create missing categories and dishes.

    Returns:
        Number of categories and dishes created
    """
    data = load_menu_file(menu_file)
    wanted = {section.lower() for section in sections} if sections else None
    store = DishPersistenceService(db)
    created = {"categories": 0, "dishes": 0}
    category_ids: Dict[str, int] = {}

    for entry in data.get("categories", []):
        key = entry.pop("key")
        if wanted is not None and key not in wanted:
            continue
        slug = generate_slug(entry["name_en"])
        category = await _find_by_slug(db, Category, slug)
        if category is None:
            category = await store.create_category(CategoryInput(slug=slug, **entry))
            created["categories"] += 1
            logger.info(f"[SEED] Created category: {category.name_en}")
        category_ids[key] = category.id

    for entry in data.get("dishes", []):
        key = entry.pop("category", None)
        if wanted is not None and key not in wanted:
            continue
        slug = generate_slug(entry["name_en"])
        if await _find_by_slug(db, Dish, slug) is not None:
            continue
        dish = await store.create_dish(
            DishInput(slug=slug, category_id=category_ids.get(key), **entry)
        )
        created["dishes"] += 1
        logger.info(f"[SEED] Created dish: {dish.name_en} ({len(dish.variants)} variants)")

    return created


async def ensure_slugs(db: AsyncSession) -> int:
    """Give every dish without a slug a unique one. Returns how many were set."""
    store = DishPersistenceService(db)
    result = await db.execute(select(Dish).where(Dish.slug.is_(None)).order_by(Dish.id))
    dishes = list(result.scalars().all())
    for dish in dishes:
        dish.slug = await store.unique_slug(Dish, dish.name_en, exclude_id=dish.id)
        # Flush so the next dish sees this slug as taken
        await db.flush()
        logger.info(f"[SEED] Generated slug '{dish.slug}' for '{dish.name_en}'")
    await db.commit()
    return len(dishes)


async def main(sections: Iterable[str]) -> None:
    from app.core.logging import setup_logging
    from app.db.database import AsyncSessionLocal, init_db

    setup_logging()
    await init_db()
    async with AsyncSessionLocal() as session:
        created = await seed_menu(session, sections=list(sections) or None)
        slugs = await ensure_slugs(session)
    logger.info(
        f"[SEED] Done - {created['categories']} categories, "
        f"{created['dishes']} dishes created, {slugs} slugs generated"
    )


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
