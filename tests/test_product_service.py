"""Tests for the product catalog service."""

from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

import pytest

from conftest import NOW, stored_file, warranty_data
from warranty_api.models.product import Product, ProductCategory
from warranty_api.services import event_service, file_storage, product_service, warranty_service
from warranty_api.utils.errors import ConflictError, NotFoundError


async def _create(session, name, category=ProductCategory.ELECTRONICS):
    return await product_service.create_product(session, {
        "name": name,
        "description": f"{name} description",
        "category": category,
        "manufacturer": "Acme",
    })


class TestListProducts:

    async def test_sort_and_filter(self, session):
        await _create(session, "Toaster", ProductCategory.APPLIANCES)
        await _create(session, "Laptop")
        await _create(session, "Camera")

        by_name = await product_service.list_products(session)
        assert [p.name for p in by_name] == ["Camera", "Laptop", "Toaster"]

        descending = await product_service.list_products(session, sort="nameDesc")
        assert [p.name for p in descending] == ["Toaster", "Laptop", "Camera"]

        electronics = await product_service.list_products(session, category=ProductCategory.ELECTRONICS)
        assert {p.name for p in electronics} == {"Laptop", "Camera"}

    async def test_categories_in_use(self, session):
        await _create(session, "Toaster", ProductCategory.APPLIANCES)
        await _create(session, "Laptop")
        await _create(session, "Phone")

        assert await product_service.list_categories(session) == ["Appliances", "Electronics"]


class TestDeleteProduct:

    async def test_rejected_while_warranties_reference_it(self, session, user, product):
        await warranty_service.create_warranty(
            session, user, warranty_data(product.id, datetime(2025, 1, 1, tzinfo=timezone.utc)), NOW
        )

        with pytest.raises(ConflictError):
            await product_service.delete_product(session, product.id)

        assert await session.get(Product, product.id) is not None

    async def test_succeeds_without_warranties(self, session, product):
        await product_service.delete_product(session, product.id)

        with pytest.raises(NotFoundError):
            await product_service.get_product(session, product.id)

    async def test_succeeds_after_last_warranty_removed(self, session, user, product):
        details = await warranty_service.create_warranty(
            session, user, warranty_data(product.id, datetime(2025, 1, 1, tzinfo=timezone.utc)), NOW
        )
        await warranty_service.delete_warranty(session, user, details.warranty.id)

        await product_service.delete_product(session, product.id)

        assert await session.get(Product, product.id) is None

    async def test_clears_event_references(self, session, user, product):
        event = await event_service.create_event(session, user, {
            "title": "Filter change",
            "start_date": NOW,
            "related_product_id": product.id,
        })

        await product_service.delete_product(session, product.id)

        await session.refresh(event)
        assert event.related_product_id is None

    async def test_missing_product(self, session):
        with pytest.raises(NotFoundError):
            await product_service.delete_product(session, uuid4())


class TestProductImage:

    async def test_replacing_image_removes_previous_file(self, session, product, test_settings):
        images = Path(test_settings.UPLOAD_DIR) / file_storage.PRODUCT_IMAGES_SUBDIR
        first = stored_file(images, "first.png")
        second = stored_file(images, "second.png")

        await product_service.set_product_image(session, product.id, first)
        updated = await product_service.set_product_image(session, product.id, second)

        assert updated.image == "/uploads/products/second.png"
        assert not Path(first.path).exists()
        assert Path(second.path).exists()
