from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from marketplace.cart.infra.session_store import CartSessionStore
from marketplace.catalog.domain.models.catalog import Product
from marketplace.services import CartService, CatalogService
from marketplace.services.base import ErrorCodes, service_err, service_ok


class FakeSession(dict):
    modified = False
    session_key = "cart-service-session"


@pytest.fixture
def mock_catalog_service():
    return MagicMock(spec=CatalogService)


@pytest.fixture
def cart_service(mock_catalog_service):
    return CartService(catalog_service=mock_catalog_service)


@pytest.fixture
def store():
    return CartSessionStore(FakeSession())


@pytest.mark.unit
class TestCartService:
    def test_get_cart_empty(self, cart_service, store):
        result = cart_service.get_cart(store)

        assert result.ok is True
        assert result.value.is_empty

    def test_add_to_cart_success(self, cart_service, mock_catalog_service, store):
        mock_catalog_service.get_product.return_value = service_ok(
            Product(id="prod_1", name="Premium T-Shirt", price=Decimal("29.99"))
        )

        result = cart_service.add_to_cart(store, "prod_1", 2)

        assert result.ok is True
        assert result.value.total() == Decimal("59.98")
        assert store.load().lines["prod_1"].quantity == 2

    def test_add_to_cart_merges_and_coerces(self, cart_service, mock_catalog_service, store):
        mock_catalog_service.get_product.return_value = service_ok(
            Product(id="prod_1", name="Premium T-Shirt", price=Decimal("10.00"))
        )

        cart_service.add_to_cart(store, "prod_1", 2)
        result = cart_service.add_to_cart(store, "prod_1", "not-a-number")

        assert result.value.items_count == 1
        assert result.value.lines["prod_1"].quantity == 3

    def test_add_to_cart_unknown_product(self, cart_service, mock_catalog_service, store):
        mock_catalog_service.get_product.return_value = service_err(ErrorCodes.PRODUCT_NOT_FOUND, "missing")

        result = cart_service.add_to_cart(store, "prod_missing", 1)

        assert result.ok is False
        assert result.error == ErrorCodes.PRODUCT_NOT_FOUND
        assert store.load().is_empty

    def test_remove_from_cart(self, cart_service, mock_catalog_service, store):
        mock_catalog_service.get_product.return_value = service_ok(
            Product(id="prod_1", name="Premium T-Shirt", price=Decimal("10.00"))
        )
        cart_service.add_to_cart(store, "prod_1", 1)

        result = cart_service.remove_from_cart(store, "prod_1")

        assert result.ok is True
        assert result.value.is_empty
        assert store.load().is_empty

    def test_remove_absent_product_is_noop(self, cart_service, store):
        result = cart_service.remove_from_cart(store, "prod_9")

        assert result.ok is True
        assert result.value.is_empty

    def test_clear_cart(self, cart_service, mock_catalog_service, store):
        mock_catalog_service.get_product.return_value = service_ok(
            Product(id="prod_1", name="Premium T-Shirt", price=Decimal("10.00"))
        )
        cart_service.add_to_cart(store, "prod_1", 4)

        result = cart_service.clear_cart(store)

        assert result.value.is_empty
        assert store.load().is_empty
