"""Unit tests for ``InventoryService`` and the availability invariant."""

from decimal import Decimal
from uuid import uuid4

import pytest

from modules.products.constants import BACK_IN_STOCK_NOTE, OUT_OF_STOCK_NOTE, ProductStatus
from modules.products.models import Product, ProductStatusHistory
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import InventoryService

pytestmark = pytest.mark.unit


@pytest.fixture()
def inventory():
    return InventoryService(ProductDjangoRepository())


class TestApplyQuantity:
    def test_zero_quantity_makes_product_unavailable(self, product):
        assert product.apply_quantity(Decimal("0")) == ProductStatus.UNAVAILABLE
        assert product.status == ProductStatus.UNAVAILABLE

    def test_restock_makes_product_available(self, make_product):
        product = make_product(quantity=Decimal("0"), status=ProductStatus.UNAVAILABLE)
        assert product.apply_quantity(Decimal("5")) == ProductStatus.AVAILABLE

    def test_no_toggle_when_status_already_consistent(self, product):
        assert product.apply_quantity(Decimal("7")) is None
        assert product.status == ProductStatus.AVAILABLE

    def test_preparing_product_keeps_status_on_restock(self, make_product):
        product = make_product(status=ProductStatus.PREPARING)
        assert product.apply_quantity(Decimal("50")) is None
        assert product.status == ProductStatus.PREPARING

    def test_quantity_is_rounded_to_stored_precision(self, product):
        assert product.apply_quantity(Decimal("0.0004")) == ProductStatus.UNAVAILABLE
        product.save()
        product.refresh_from_db()
        assert product.quantity == Decimal("0")
        assert product.status == ProductStatus.UNAVAILABLE


class TestAdjustAvailability:
    def test_commit_deducts(self, inventory, product):
        inventory.adjust_availability(product, Decimal("-5"))
        product.refresh_from_db()
        assert product.quantity == Decimal("15")
        assert product.status == ProductStatus.AVAILABLE
        assert not ProductStatusHistory.objects.filter(product=product).exists()

    def test_commit_clamps_at_zero(self, inventory, product):
        inventory.adjust_availability(product, Decimal("-25"))
        product.refresh_from_db()
        assert product.quantity == Decimal("0")
        assert product.status == ProductStatus.UNAVAILABLE

    def test_out_of_stock_toggle_recorded_with_owner_as_actor(self, inventory, product, farmer):
        inventory.adjust_availability(product, Decimal("-20"))

        entry = ProductStatusHistory.objects.get(product=product)
        assert entry.status == ProductStatus.UNAVAILABLE
        assert entry.note == OUT_OF_STOCK_NOTE
        assert entry.actor_id == farmer.id

    def test_release_restocks_and_records_toggle(self, inventory, make_product):
        product = make_product(quantity=Decimal("0"), status=ProductStatus.UNAVAILABLE)
        inventory.adjust_availability(product, Decimal("3"))

        product.refresh_from_db()
        assert product.quantity == Decimal("3")
        assert product.status == ProductStatus.AVAILABLE
        assert ProductStatusHistory.objects.get(product=product).note == BACK_IN_STOCK_NOTE


class TestCommitRelease:
    def test_commit_and_release_are_symmetric(self, inventory, product, make_product):
        cheese = make_product(name="Oscypek", quantity=Decimal("4"))
        lines = [(product.id, Decimal("2")), (cheese.id, Decimal("4"))]

        inventory.commit(lines)
        assert Product.objects.get(pk=product.pk).quantity == Decimal("18")
        assert Product.objects.get(pk=cheese.pk).status == ProductStatus.UNAVAILABLE

        inventory.release(lines)
        assert Product.objects.get(pk=product.pk).quantity == Decimal("20")
        restored = Product.objects.get(pk=cheese.pk)
        assert restored.quantity == Decimal("4")
        assert restored.status == ProductStatus.AVAILABLE

    def test_release_reaches_soft_deleted_products(self, inventory, product):
        product.delete()
        inventory.release([(product.id, Decimal("5"))])
        assert Product.objects.get(pk=product.pk).quantity == Decimal("25")

    def test_unknown_product_is_skipped(self, inventory, product):
        inventory.release([(uuid4(), Decimal("5")), (product.id, Decimal("5"))])
        assert Product.objects.get(pk=product.pk).quantity == Decimal("25")
