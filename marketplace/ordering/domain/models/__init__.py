from .order import ALLOWED_TRANSITIONS, Order, OrderItem, OrderStateConflict, OrderStatus


__all__ = [
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderStateConflict",
    "ALLOWED_TRANSITIONS",
]
