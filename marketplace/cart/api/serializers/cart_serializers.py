from rest_framework import serializers


class CartItemSerializer(serializers.Serializer):
    product_id = serializers.CharField(read_only=True)
    product_name = serializers.CharField(read_only=True)
    quantity = serializers.IntegerField(read_only=True)
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)


class CartSerializer(serializers.Serializer):
    items = CartItemSerializer(many=True, read_only=True)
    items_count = serializers.IntegerField(read_only=True)
    is_empty = serializers.BooleanField(read_only=True)
    total = serializers.SerializerMethodField()

    def get_total(self, obj) -> str:
        return f"{obj.total():.2f}"


class AddToCartRequestSerializer(serializers.Serializer):
    product_id = serializers.CharField(required=True, help_text="Catalogue product id, e.g. prod_1")
    # Raw value: malformed or non-positive quantities are coerced to 1 by the cart
    quantity = serializers.JSONField(required=False, default=1, help_text="Quantity to add (defaults to 1)")


class RemoveFromCartRequestSerializer(serializers.Serializer):
    product_id = serializers.CharField(required=True, help_text="Catalogue product id to remove")
