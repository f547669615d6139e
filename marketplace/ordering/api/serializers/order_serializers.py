from rest_framework import serializers

from marketplace.ordering.domain.models.order import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "product_id",
            "product_name",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = serializers.SerializerMethodField()
    is_terminal = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "customer_email",
            "status",
            "is_terminal",
            "total_amount",
            "payment_session_id",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_items(self, obj):
        # ``lines`` holds unsaved working items as well as persisted ones
        return OrderItemSerializer(obj.lines, many=True).data

    def get_is_terminal(self, obj) -> bool:
        return obj.current_status.is_terminal
