from .catalog_service import FEATURED_PRODUCTS_LIMIT, CatalogService


__all__ = [
    "CatalogService",
    "FEATURED_PRODUCTS_LIMIT",
]
