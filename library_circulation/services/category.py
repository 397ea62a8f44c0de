from typing import Optional, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from library_circulation.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from library_circulation.core.logging import get_logger
from library_circulation.db.models import Category

logger = get_logger("services.category")


async def get_categories(db: AsyncSession) -> List[Category]:
    """List categories ordered by name."""
    result = await db.execute(select(Category).order_by(Category.name))
    return list(result.scalars().all())


async def get_category_by_id(db: AsyncSession, category_id: str) -> Optional[Category]:
    result = await db.execute(select(Category).where(Category.id == category_id))
    return result.scalar_one_or_none()


async def find_category_by_name(db: AsyncSession, name: str) -> Optional[Category]:
    result = await db.execute(select(Category).where(Category.name == name))
    return result.scalar_one_or_none()


async def create_category(db: AsyncSession, data: dict) -> Category:
    """Create a category. Names are unique."""
    name = (data.get("name") or "").strip()
    if not name:
        raise InvalidInputError("Name is required")
    if await find_category_by_name(db, name):
        raise ConflictError("Category name already exists")

    category = Category(name=name, description=data.get("description"))
    db.add(category)
    await db.flush()
    await db.refresh(category)

    logger.info(f"Category created: id={category.id} name='{category.name}'")
    return category


async def update_category(db: AsyncSession, category_id: str, data: dict) -> Category:
    category = await get_category_by_id(db, category_id)
    if not category:
        raise NotFoundError("Category not found")

    name = (data.get("name") or "").strip()
    if not name:
        raise InvalidInputError("Name is required")
    existing = await find_category_by_name(db, name)
    if existing and existing.id != category.id:
        raise ConflictError("Category name already exists")

    category.name = name
    category.description = data.get("description")
    await db.flush()
    await db.refresh(category)

    logger.info(f"Category updated: id={category_id}")
    return category


async def delete_category(db: AsyncSession, category_id: str) -> None:
    """Delete a category; its books stay in the catalog without one."""
    category = await get_category_by_id(db, category_id)
    if not category:
        raise NotFoundError("Category not found")

    await db.delete(category)
    await db.flush()

    logger.info(f"Category deleted: id={category_id}")
