"""
Base classes and utilities for the service layer.

This module provides the ServiceResult pattern (inspired by Rust's Result type)
and BaseService class for all storefront services.
"""

import logging
import time
from dataclasses import dataclass
from functools import wraps
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    A result type that encapsulates success or failure from service operations.

    Expected failures (missing product, empty cart, conflicting order state) are
    reported through ``error`` codes instead of exceptions so views can map them
    to HTTP responses without try/except noise.

    Attributes:
        ok: True if operation succeeded, False otherwise
        value: The success value (present if ok=True)
        error: Error code (present if ok=False)
        error_detail: Human-readable error message (present if ok=False)

    Examples:
        >>> result = service_ok(product)
        >>> if result.ok:
        ...     return Response({"product": result.value}, 200)
        >>> else:
        ...     return Response({"error": result.error}, 400)

        >>> result = service_err("product_not_found", "Product prod_9 does not exist")
        >>> print(result.error)  # "product_not_found"
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_detail: Optional[str] = None


def service_ok(value: T) -> ServiceResult[T]:
    """
    Create a successful ServiceResult.

    Args:
        value: The success value

    Returns:
        ServiceResult with ok=True and the value
    """
    return ServiceResult(ok=True, value=value)


def service_err(error: str, error_detail: str = "") -> ServiceResult:
    """
    Create a failed ServiceResult.

    Args:
        error: Error code (e.g., "product_not_found", "state_conflict")
        error_detail: Human-readable error message

    Returns:
        ServiceResult with ok=False and error information

    Example:
        >>> return service_err("order_not_found", f"No order for session {session_id}")
    """
    return ServiceResult(ok=False, error=error, error_detail=error_detail or error)


class BaseService:
    """
    Base class for all services providing common functionality.

    Provides:
    - Logging with class name
    - Performance timing decorator

    Usage:
        class CatalogService(BaseService):
            @BaseService.log_performance
            def list_products(self):
                self.logger.info("Listing products")
                # ... implementation
    """

    def __init__(self):
        """Initialize base service with logger."""
        self.logger = logging.getLogger(self.__class__.__module__ + "." + self.__class__.__name__)

    @staticmethod
    def log_performance(func: Callable) -> Callable:
        """
        Decorator to log performance of service methods.

        Logs execution time, the error code of failed results, and any exception
        raised (which is re-raised untouched).

        Args:
            func: The service method to wrap

        Returns:
            Wrapped function with performance logging
        """

        @wraps(func)
        def wrapper(self, *args, **kwargs):
            start_time = time.time()
            method_name = f"{self.__class__.__name__}.{func.__name__}"

            try:
                self.logger.debug(f"{method_name} started")
                result = func(self, *args, **kwargs)
                elapsed_time = (time.time() - start_time) * 1000  # Convert to ms

                if isinstance(result, ServiceResult):
                    if result.ok:
                        self.logger.info(f"{method_name} completed successfully in {elapsed_time:.2f}ms")
                    else:
                        self.logger.warning(
                            f"{method_name} failed with error '{result.error}' in {elapsed_time:.2f}ms"
                        )
                else:
                    self.logger.info(f"{method_name} completed in {elapsed_time:.2f}ms")

                return result

            except Exception as e:
                elapsed_time = (time.time() - start_time) * 1000
                self.logger.error(
                    f"{method_name} raised exception after {elapsed_time:.2f}ms: {str(e)}",
                    exc_info=True,
                )
                raise

        return wrapper


class ErrorCodes:
    """Standard error codes used across storefront services."""

    # Product errors
    PRODUCT_NOT_FOUND = "product_not_found"

    # Cart errors
    CART_EMPTY = "cart_empty"
    INVALID_QUANTITY = "invalid_quantity"

    # Order errors
    ORDER_NOT_FOUND = "order_not_found"
    STATE_CONFLICT = "state_conflict"

    # Payment errors
    PAYMENT_PROVIDER_ERROR = "payment_provider_error"
    PAYMENT_CONFIGURATION_ERROR = "payment_configuration_error"
    SIGNATURE_INVALID = "signature_invalid"
    MALFORMED_PAYLOAD = "malformed_payload"

    # Validation errors
    VALIDATION_ERROR = "validation_error"

    # Internal errors
    INTERNAL_ERROR = "internal_error"
    DATABASE_ERROR = "database_error"
