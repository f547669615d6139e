"""
Marketplace Service Layer

Business logic for the storefront, organized into domain services. Each service
returns ``ServiceResult`` values instead of raising for expected failures.

Services:
- CatalogService: Product browsing and catalogue seeding
- CartService: Session cart operations
- OrderService: Order ledger and status transitions

Usage:
    from marketplace.services import CatalogService

    result = CatalogService().get_product("prod_1")
    if result.ok:
        product = result.value
    else:
        error = result.error
"""

from marketplace.cart.domain.services.cart_service import CartService
from marketplace.catalog.domain.services.catalog_service import CatalogService
from marketplace.ordering.domain.services.order_service import OrderService

from .base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok


__all__ = [
    # Base classes
    "BaseService",
    "ServiceResult",
    # Helper functions
    "service_ok",
    "service_err",
    # Error codes
    "ErrorCodes",
    # Services
    "CatalogService",
    "CartService",
    "OrderService",
]
