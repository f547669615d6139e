from .catalog import PLACEHOLDER_IMAGE_URL, SEED_PRODUCTS, Product


__all__ = [
    "Product",
    "SEED_PRODUCTS",
    "PLACEHOLDER_IMAGE_URL",
]
