"""
OrderService - Order Ledger

Durable storage of orders and their line items, plus the guarded status changes
driven by checkout, the payment webhook and user cancellation.

Orders are built in memory (``create_order`` + ``Order.add_item``) and written in a
single transaction by ``save_order``. Status changes re-read the row under
``select_for_update`` so concurrent webhook deliveries cannot apply conflicting
terminal transitions.
"""

import logging
from decimal import InvalidOperation

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.utils import timezone

from infrastructure.observability.tracing import tracer
from marketplace.infra.observability.metrics import order_save_duration, order_status_transitions_total
from marketplace.ordering.domain.models.order import Order, OrderItem, OrderStateConflict, OrderStatus
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from utils.transaction_utils import TransactionError, atomic_operation, retry_on_deadlock

logger = logging.getLogger(__name__)


class OrderService(BaseService):
    """
    Service for the order ledger.

    Responsibilities:
    - Create orders and persist them together with their items
    - Look orders up by id or by payment session id
    - Attach the provider session id once
    - Apply monotonic status transitions
    """

    def create_order(self, customer_email: str = "") -> Order:
        """
        Build a new pending order with no items. The order is not persisted.

        Args:
            customer_email: Buyer email, may be empty until provided

        Returns:
            Unsaved Order instance with a fresh UUID
        """
        now = timezone.now()
        order = Order(
            customer_email=customer_email or "",
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self.logger.debug(f"Created in-memory order {order.id}")
        return order

    @BaseService.log_performance
    def save_order(self, order: Order) -> ServiceResult[Order]:
        """
        Upsert the order row and replace its item rows, all or nothing.

        Any database failure rolls back the whole write, leaving the previously
        persisted state intact.

        Args:
            order: Order with its current ``lines``

        Returns:
            ServiceResult with the saved Order, or ``database_error``
        """
        lines = list(order.lines)

        with tracer.start_as_current_span("order.save") as span:
            span.set_attribute("order.id", str(order.id))
            span.set_attribute("order.items", len(lines))

            try:
                with order_save_duration.time(), atomic_operation(f"save order {order.id}"):
                    order.calculate_total()
                    order.updated_at = timezone.now()
                    order.save()

                    OrderItem.objects.filter(order=order).delete()
                    for line in lines:
                        line.pk = None
                        line.order = order
                    OrderItem.objects.bulk_create(lines)

            except TransactionError as e:
                span.record_exception(e)
                return service_err(ErrorCodes.DATABASE_ERROR, f"Could not save order {order.id}: {e}")
            except (InvalidOperation, OverflowError) as e:
                # Amount does not fit the order columns; the atomic block has rolled back
                span.record_exception(e)
                self.logger.error(f"Order {order.id} amounts out of range: {e}")
                return service_err(ErrorCodes.DATABASE_ERROR, f"Could not save order {order.id}: amount out of range")

        self.logger.info(f"Saved order {order.id}: {len(lines)} items, total ${order.total_amount}")
        return service_ok(order)

    @BaseService.log_performance
    def get_order(self, order_id) -> ServiceResult[Order]:
        """
        Get an order with its items.

        Returns:
            ServiceResult with the Order, or ``order_not_found`` for unknown or malformed ids
        """
        try:
            order = Order.objects.prefetch_related("items").get(id=order_id)
            return service_ok(order)
        except (Order.DoesNotExist, DjangoValidationError, ValueError):
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order_id} not found")
        except DatabaseError as e:
            self.logger.error(f"Error loading order {order_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.DATABASE_ERROR, str(e))

    @BaseService.log_performance
    def find_by_payment_session_id(self, session_id: str) -> ServiceResult[Order]:
        """
        Resolve the order a provider checkout session belongs to.

        Returns:
            ServiceResult with the Order, or ``order_not_found``
        """
        if not session_id:
            return service_err(ErrorCodes.ORDER_NOT_FOUND, "No payment session id given")

        try:
            order = Order.objects.prefetch_related("items").get(payment_session_id=session_id)
            return service_ok(order)
        except Order.DoesNotExist:
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"No order for payment session {session_id}")
        except DatabaseError as e:
            self.logger.error(f"Error looking up payment session {session_id}: {e}", exc_info=True)
            return service_err(ErrorCodes.DATABASE_ERROR, str(e))

    @BaseService.log_performance
    def attach_payment_session(self, order: Order, session_id: str) -> ServiceResult[Order]:
        """
        Store the provider session id on the order. It can be assigned only once.

        Re-attaching the same id is a no-op; a different id is a ``state_conflict``.
        """
        try:
            with atomic_operation(f"attach session to order {order.id}"):
                locked = Order.objects.select_for_update().get(pk=order.pk)

                if locked.payment_session_id == session_id:
                    order.payment_session_id = session_id
                    return service_ok(order)

                if locked.payment_session_id:
                    return service_err(
                        ErrorCodes.STATE_CONFLICT,
                        f"Order {order.id} already has payment session {locked.payment_session_id}",
                    )

                locked.payment_session_id = session_id
                locked.updated_at = timezone.now()
                locked.save(update_fields=["payment_session_id", "updated_at"])

        except Order.DoesNotExist:
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order.id} not found")
        except TransactionError as e:
            return service_err(ErrorCodes.DATABASE_ERROR, f"Could not attach session to order {order.id}: {e}")

        order.payment_session_id = locked.payment_session_id
        order.updated_at = locked.updated_at
        self.logger.info(f"Attached payment session {session_id} to order {order.id}")
        return service_ok(order)

    @BaseService.log_performance
    def update_status(self, order: Order, new_status) -> ServiceResult[Order]:
        """
        Move the order to ``new_status``.

        The current status is re-read under a row lock. Requesting the status the
        order already has is a successful no-op that leaves every field untouched;
        leaving a terminal status is a ``state_conflict``.

        Args:
            order: Order to update (refreshed in place on success)
            new_status: Target OrderStatus

        Returns:
            ServiceResult with the Order
        """
        new_status = OrderStatus(new_status)

        try:
            locked, changed, previous = self._apply_status(order.pk, new_status)
        except Order.DoesNotExist:
            return service_err(ErrorCodes.ORDER_NOT_FOUND, f"Order {order.pk} not found")
        except OrderStateConflict as e:
            return service_err(ErrorCodes.STATE_CONFLICT, str(e))
        except TransactionError as e:
            return service_err(ErrorCodes.DATABASE_ERROR, f"Could not update order {order.pk}: {e}")

        order.status = locked.status
        order.updated_at = locked.updated_at
        order.status_changed = changed

        if changed:
            order_status_transitions_total.labels(from_status=previous, to_status=new_status.value).inc()
            self.logger.info(f"Order {order.pk} moved from {previous} to {new_status.value}")
        else:
            self.logger.info(f"Order {order.pk} already {new_status.value}, nothing to do")

        return service_ok(order)

    @BaseService.log_performance
    def cancel_order(self, order_id) -> ServiceResult[Order]:
        """
        User-initiated cancellation of a pending order (recorded as ``failed``).
        """
        order_result = self.get_order(order_id)
        if not order_result.ok:
            return order_result

        return self.update_status(order_result.value, OrderStatus.FAILED)

    @retry_on_deadlock(max_retries=3)
    def _apply_status(self, order_pk, new_status: OrderStatus):
        with atomic_operation(f"update order {order_pk} to {new_status.value}"):
            locked = Order.objects.select_for_update().get(pk=order_pk)
            previous = locked.status
            changed = locked.transition_to(new_status)
            if changed:
                locked.save(update_fields=["status", "updated_at"])
        return locked, changed, previous
