from .product_serializers import ProductDetailSerializer, ProductListSerializer

__all__ = [
    "ProductListSerializer",
    "ProductDetailSerializer",
]
