import logging

from rest_framework import serializers

from marketplace.catalog.domain.models.catalog import Product


logger = logging.getLogger(__name__)


class ProductListSerializer(serializers.ModelSerializer):
    """Minimal product serializer for list pages - just the essentials for product cards"""

    formatted_price = serializers.CharField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "price",
            "formatted_price",
            "image_url",
        ]
        read_only_fields = fields


class ProductDetailSerializer(ProductListSerializer):
    """Full product serializer for the detail page"""

    class Meta(ProductListSerializer.Meta):
        fields = ProductListSerializer.Meta.fields + ["description"]
        read_only_fields = fields
