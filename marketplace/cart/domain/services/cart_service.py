"""
CartService - Shopping Cart Operations

Adds, removes and clears cart lines. The cart lives in the visitor's session;
every operation is a read-modify-write through ``CartSessionStore``, so two
overlapping requests of the same session resolve last-write-wins.
"""

import logging

from marketplace.cart.domain.models.cart import Cart, coerce_quantity
from marketplace.cart.infra.session_store import CartSessionStore
from marketplace.catalog.domain.services.catalog_service import CatalogService
from marketplace.infra.observability.metrics import cart_operations_total
from marketplace.services.base import BaseService, ServiceResult, service_ok

logger = logging.getLogger(__name__)


class CartService(BaseService):
    """
    Service for managing the session cart.

    Dependencies:
    - CatalogService: resolves products and their current price
    """

    def __init__(self, catalog_service: CatalogService = None):
        """
        Initialize CartService.

        Args:
            catalog_service: Service for product lookups (injected)
        """
        super().__init__()
        self.catalog_service = catalog_service or CatalogService()

    @BaseService.log_performance
    def get_cart(self, store: CartSessionStore) -> ServiceResult[Cart]:
        """
        Load the session cart (empty when the session has none).

        Example:
            >>> result = cart_service.get_cart(CartSessionStore(request.session))
            >>> cart = result.value
            >>> cart.total()
        """
        return service_ok(store.load())

    @BaseService.log_performance
    def add_to_cart(self, store: CartSessionStore, product_id: str, quantity=1) -> ServiceResult[Cart]:
        """
        Add ``quantity`` of a product, merging into an existing line.

        The quantity is coerced: malformed or non-positive values count as 1.

        Args:
            store: Session cart store
            product_id: Catalogue product id
            quantity: Requested quantity (raw request value accepted)

        Returns:
            ServiceResult with the updated Cart, or ``product_not_found``
        """
        product_result = self.catalog_service.get_product(product_id)
        if not product_result.ok:
            cart_operations_total.labels(operation="add", status="failure").inc()
            return product_result

        product = product_result.value
        quantity = coerce_quantity(quantity)

        cart = store.load()
        line = cart.add(product, quantity)
        store.save(cart)

        cart_operations_total.labels(operation="add", status="success").inc()
        self.logger.info(
            f"Added {quantity}x {product.id} to cart of session {store.session_key} (line quantity {line.quantity})"
        )
        return service_ok(cart)

    @BaseService.log_performance
    def remove_from_cart(self, store: CartSessionStore, product_id: str) -> ServiceResult[Cart]:
        """
        Remove the line for ``product_id``. Removing an absent product is a no-op.
        """
        cart = store.load()
        removed = cart.remove(product_id)
        if removed:
            store.save(cart)
            self.logger.info(f"Removed {product_id} from cart of session {store.session_key}")
        else:
            self.logger.debug(f"Product {product_id} not in cart of session {store.session_key}")

        cart_operations_total.labels(operation="remove", status="success").inc()
        return service_ok(cart)

    @BaseService.log_performance
    def clear_cart(self, store: CartSessionStore) -> ServiceResult[Cart]:
        store.clear()
        cart_operations_total.labels(operation="clear", status="success").inc()
        self.logger.info(f"Cleared cart of session {store.session_key}")
        return service_ok(Cart())
