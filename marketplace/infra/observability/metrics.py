from prometheus_client import Counter, Histogram


# Order Metrics
orders_placed_total = Counter("storefront_orders_placed_total", "Total orders placed at checkout", ["status"])
order_value = Histogram(
    "storefront_order_value",
    "Order value distribution",
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 5000, float("inf")],
)
order_status_transitions_total = Counter(
    "storefront_order_status_transitions_total", "Order status changes applied", ["from_status", "to_status"]
)

# Cart Metrics
cart_operations_total = Counter("storefront_cart_operations_total", "Cart operations", ["operation", "status"])

# Persistence Metrics
order_save_duration = Histogram("storefront_order_save_seconds", "Time spent persisting an order and its items")
