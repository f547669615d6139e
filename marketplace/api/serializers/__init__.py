# Marketplace API Serializers

# Import response serializers for API documentation
from .response_serializers import ErrorResponseSerializer

__all__ = [
    "ErrorResponseSerializer",
]
