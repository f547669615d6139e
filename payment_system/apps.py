import logging

from django.apps import AppConfig
from django.conf import settings


logger = logging.getLogger(__name__)


class PaymentSystemConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "payment_system"
    verbose_name = "Payment System"

    def ready(self):
        """Initialize tracing when Django starts"""
        from infrastructure.observability.tracing import setup_tracing

        setup_tracing(
            service_name=getattr(settings, "TRACING_SERVICE_NAME", "storefront-backend"),
            otlp_endpoint=getattr(settings, "TRACING_OTLP_ENDPOINT", None),
            enable=getattr(settings, "TRACING_ENABLED", False),
        )
