"""
CatalogService - Product Browsing

Read access to the product catalogue and idempotent seeding of the initial
product set.
"""

import logging
from typing import List

from django.db import DatabaseError

from marketplace.catalog.domain.models.catalog import SEED_PRODUCTS, Product
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from utils.transaction_utils import TransactionError, atomic_operation


logger = logging.getLogger(__name__)

FEATURED_PRODUCTS_LIMIT = 3


class CatalogService(BaseService):
    """
    Service for product catalogue operations.

    Responsibilities:
    - List products (all, or the featured subset for the home page)
    - Get product details
    - Seed the initial catalogue

    Products are immutable once seeded; this service never updates them.
    """

    @BaseService.log_performance
    def list_products(self) -> ServiceResult[List[Product]]:
        """
        List every product ordered by id.

        Returns:
            ServiceResult with a list of products (empty when the catalogue is empty)

        Example:
            >>> result = catalog_service.list_products()
            >>> if result.ok:
            ...     products = result.value
        """
        try:
            products = list(Product.objects.order_by("id"))
        except DatabaseError as e:
            self.logger.error(f"Error listing products: {e}", exc_info=True)
            return service_err(ErrorCodes.DATABASE_ERROR, str(e))

        self.logger.info(f"Listed {len(products)} products")
        return service_ok(products)

    @BaseService.log_performance
    def list_featured(self, limit: int = FEATURED_PRODUCTS_LIMIT) -> ServiceResult[List[Product]]:
        """List the first ``limit`` products."""
        try:
            return service_ok(list(Product.objects.order_by("id")[: max(limit, 0)]))
        except DatabaseError as e:
            self.logger.error(f"Error listing featured products: {e}", exc_info=True)
            return service_err(ErrorCodes.DATABASE_ERROR, str(e))

    @BaseService.log_performance
    def get_product(self, product_id: str) -> ServiceResult[Product]:
        """
        Get a single product.

        Args:
            product_id: Product id, e.g. ``prod_1``

        Returns:
            ServiceResult with the Product, or ``product_not_found``
        """
        try:
            return service_ok(Product.objects.get(id=product_id))
        except Product.DoesNotExist:
            return service_err(ErrorCodes.PRODUCT_NOT_FOUND, f"Product {product_id} not found")
        except DatabaseError as e:
            self.logger.error(f"Error getting product {product_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.DATABASE_ERROR, str(e))

    @BaseService.log_performance
    def seed_products(self) -> ServiceResult[int]:
        """
        Insert any seed product that is missing. Existing rows are left untouched.

        Returns:
            ServiceResult with the number of products inserted
        """
        created = 0
        try:
            with atomic_operation("seed products"):
                for data in SEED_PRODUCTS:
                    _, was_created = Product.objects.get_or_create(
                        id=data["id"],
                        defaults={key: value for key, value in data.items() if key != "id"},
                    )
                    if was_created:
                        created += 1
        except TransactionError as e:
            return service_err(ErrorCodes.DATABASE_ERROR, f"Could not seed products: {e}")

        self.logger.info(f"Seeded {created} of {len(SEED_PRODUCTS)} products")
        return service_ok(created)
