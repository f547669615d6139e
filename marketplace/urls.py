from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .api.views import prometheus_metrics
from .cart.api.views.cart_views import CartViewSet
from .catalog.api.views.product_views import ProductViewSet
from .ordering.api.views.order_views import OrderViewSet

# Create the main router
router = DefaultRouter()
router.register(r"products", ProductViewSet, basename="product")
router.register(r"cart", CartViewSet, basename="cart")
router.register(r"orders", OrderViewSet, basename="order")

app_name = "marketplace"

urlpatterns = [
    # Prometheus metrics endpoint
    path("metrics/", prometheus_metrics.marketplace_prometheus_metrics, name="marketplace-metrics"),
    # Main API routes
    path("", include(router.urls)),
]
