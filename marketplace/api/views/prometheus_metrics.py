from django.http import HttpResponse
from drf_spectacular.utils import extend_schema
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny


@extend_schema(
    operation_id="storefront_metrics",
    summary="Prometheus metrics",
    description="Order, cart, checkout and webhook counters in Prometheus text exposition format.",
    responses={200: str},
    tags=["Observability"],
)
@api_view(["GET"])
@permission_classes([AllowAny])
def marketplace_prometheus_metrics(request):
    """
    Exposes Prometheus metrics for the storefront.
    """
    metrics_content = generate_latest()
    return HttpResponse(metrics_content, content_type=CONTENT_TYPE_LATEST)
