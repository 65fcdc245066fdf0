"""Product catalog operations."""

from datetime import datetime, timezone
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col, select

from warranty_api.config.logger import app_logger
from warranty_api.models.event import Event
from warranty_api.models.product import Product, ProductCategory
from warranty_api.models.warranty import Warranty
from warranty_api.services import file_storage
from warranty_api.services.file_storage import StoredFile
from warranty_api.utils.errors import ConflictError, NotFoundError

PRODUCT_FIELDS = ("name", "description", "category", "manufacturer", "model")

SORT_OPTIONS = {
    "nameAsc": col(Product.name).asc(),
    "nameDesc": col(Product.name).desc(),
    "newest": col(Product.created_at).desc(),
}


async def list_products(
    session: AsyncSession,
    category: Optional[ProductCategory] = None,
    sort: Optional[str] = None,
) -> List[Product]:
    statement = select(Product)
    if category is not None:
        statement = statement.where(col(Product.category) == ProductCategory(category).value)
    statement = statement.order_by(SORT_OPTIONS.get(sort or "nameAsc", SORT_OPTIONS["nameAsc"]))
    result = await session.execute(statement)
    return list(result.scalars().all())


async def get_product(session: AsyncSession, product_id: UUID) -> Product:
    product = await session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


async def create_product(session: AsyncSession, data: dict[str, Any]) -> Product:
    product = Product(
        name=data["name"].strip(),
        description=data["description"],
        category=ProductCategory(data["category"]).value,
        manufacturer=data["manufacturer"].strip(),
        model=data.get("model"),
    )
    session.add(product)
    await session.commit()

    app_logger.info(f"Product created: {product.name} (ID: {product.id})")
    return product


async def update_product(session: AsyncSession, product_id: UUID, data: dict[str, Any]) -> Product:
    """Apply the supplied fields. Unknown keys are ignored."""
    product = await get_product(session, product_id)
    for key in PRODUCT_FIELDS:
        if key not in data or data[key] is None:
            continue
        value = data[key]
        if key == "category":
            value = ProductCategory(value).value
        setattr(product, key, value)

    product.updated_at = datetime.now(timezone.utc)
    session.add(product)
    await session.commit()
    return product


async def count_warranties_for_product(session: AsyncSession, product_id: UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(Warranty).where(col(Warranty.product_id) == product_id)
    )
    return result.scalar_one()


async def delete_product(session: AsyncSession, product_id: UUID) -> Product:
    """Delete a product that no warranty references.

    Raises:
        NotFoundError: product does not exist
        ConflictError: one or more warranties still reference it
    """
    product = await get_product(session, product_id)

    if await count_warranties_for_product(session, product_id) > 0:
        raise ConflictError("Cannot delete product with associated warranties")

    image = product.image
    await session.execute(
        update(Event)
        .where(col(Event.related_product_id) == product_id)
        .values(related_product_id=None)
    )
    await session.delete(product)
    await session.commit()

    if image:
        file_storage.remove_file(file_storage.resolve_public_url(image))

    app_logger.info(f"Product deleted: {product.name} (ID: {product_id})")
    return product


async def set_product_image(session: AsyncSession, product_id: UUID, stored: StoredFile) -> Product:
    product = await get_product(session, product_id)
    previous = product.image
    product.image = file_storage.public_url(stored, file_storage.PRODUCT_IMAGES_SUBDIR)
    product.updated_at = datetime.now(timezone.utc)
    session.add(product)
    await session.commit()

    if previous:
        file_storage.remove_file(file_storage.resolve_public_url(previous))
    return product


async def list_categories(session: AsyncSession) -> List[str]:
    """Categories that at least one product uses."""
    result = await session.execute(
        select(Product.category).distinct().order_by(col(Product.category))
    )
    return list(result.scalars().all())
