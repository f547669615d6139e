import logging
from dataclasses import dataclass
from typing import Optional

from infrastructure.observability.tracing import tracer
from infrastructure.payments.interface import (
    MalformedPayload,
    PaymentConfigurationError,
    PaymentProviderInterface,
    SignatureInvalid,
    WebhookEvent,
    WebhookEventKind,
)
from marketplace.ordering.domain.models.order import OrderStatus
from marketplace.services import OrderService
from marketplace.services.base import BaseService, ErrorCodes, ServiceResult, service_err, service_ok
from payment_system.infra.observability.metrics import webhook_events_total, webhook_processing_seconds
from payment_system.security import PaymentAuditLogger


logger = logging.getLogger(__name__)


class WebhookAction:
    COMPLETED = "completed"
    FAILED = "failed"
    DUPLICATE = "duplicate"
    CONFLICT = "conflict"
    UNKNOWN_ORDER = "unknown_order"
    IGNORED = "ignored"


@dataclass
class WebhookOutcome:
    event_type: str
    action: str
    order_id: Optional[str] = None


class WebhookService(BaseService):
    """
    Applies verified payment provider events to the order ledger.

    - session completed: pending -> completed. A repeat delivery is a no-op and a
      failed order is left alone (conflict logged, event acknowledged).
    - session expired: pending -> failed. A completed order is never downgraded.
    - anything else: logged and acknowledged.
    """

    def __init__(self, order_service: OrderService = None, payment_provider: PaymentProviderInterface = None):
        super().__init__()
        self.order_service = order_service or OrderService()

        if payment_provider is None:
            from infrastructure.container import container

            payment_provider = container.payment()
        self.payment_provider = payment_provider

    @BaseService.log_performance
    def process_webhook(
        self, payload: bytes, signature: str, client_ip: Optional[str] = None
    ) -> ServiceResult[WebhookOutcome]:
        """
        Verify a webhook delivery and apply it.

        Returns:
            ServiceResult with WebhookOutcome. Errors: ``signature_invalid``,
            ``malformed_payload``, ``payment_configuration_error``,
            ``order_not_found`` (completed session matching no order) and
            ``database_error``.
        """
        with tracer.start_as_current_span("webhook.process") as span, webhook_processing_seconds.time():
            try:
                event = self.payment_provider.verify_webhook(payload, signature)
            except PaymentConfigurationError as e:
                self.logger.error(f"Webhook rejected, provider not configured: {e}")
                webhook_events_total.labels(event_type="unknown", outcome="misconfigured").inc()
                return service_err(ErrorCodes.PAYMENT_CONFIGURATION_ERROR, str(e))
            except SignatureInvalid as e:
                PaymentAuditLogger.log_security_event("webhook_signature_invalid", client_ip, details=str(e))
                webhook_events_total.labels(event_type="unknown", outcome="signature_invalid").inc()
                return service_err(ErrorCodes.SIGNATURE_INVALID, str(e))
            except MalformedPayload as e:
                PaymentAuditLogger.log_security_event("webhook_malformed_payload", client_ip, details=str(e))
                webhook_events_total.labels(event_type="unknown", outcome="malformed").inc()
                return service_err(ErrorCodes.MALFORMED_PAYLOAD, str(e))

            span.set_attribute("event.type", event.event_type)
            span.set_attribute("event.id", event.event_id)

            if event.kind == WebhookEventKind.SESSION_COMPLETED:
                result = self._apply(event, OrderStatus.COMPLETED)
            elif event.kind == WebhookEventKind.SESSION_EXPIRED:
                result = self._apply(event, OrderStatus.FAILED)
            else:
                self.logger.info(f"Unhandled webhook event type: {event.event_type}")
                result = service_ok(WebhookOutcome(event.event_type, WebhookAction.IGNORED))

            outcome = result.value.action if result.ok else result.error
            webhook_events_total.labels(event_type=event.event_type, outcome=outcome).inc()
            return result

    def _resolve_order(self, event: WebhookEvent) -> ServiceResult:
        result = self.order_service.find_by_payment_session_id(event.session_id)
        if result.ok or result.error != ErrorCodes.ORDER_NOT_FOUND or not event.order_id:
            return result

        # The webhook can beat the session id write; fall back to the order id in the session metadata
        self.logger.info(f"No order for session {event.session_id}, trying order id {event.order_id}")
        return self.order_service.get_order(event.order_id)

    def _apply(self, event: WebhookEvent, target: OrderStatus) -> ServiceResult[WebhookOutcome]:
        order_result = self._resolve_order(event)

        if not order_result.ok:
            if order_result.error != ErrorCodes.ORDER_NOT_FOUND:
                return order_result
            if target == OrderStatus.COMPLETED:
                self.logger.error(f"Completed session {event.session_id} matches no order")
                return service_err(ErrorCodes.ORDER_NOT_FOUND, f"No order for session {event.session_id}")

            self.logger.warning(f"Expired session {event.session_id} matches no order, ignoring")
            return service_ok(WebhookOutcome(event.event_type, WebhookAction.UNKNOWN_ORDER))

        order = order_result.value
        order_id = str(order.id)
        previous = order.status

        if previous == target:
            self.logger.info(f"Order {order_id} already {target.value}, duplicate {event.event_type} ignored")
            return service_ok(WebhookOutcome(event.event_type, WebhookAction.DUPLICATE, order_id))

        update_result = self.order_service.update_status(order, target)
        if not update_result.ok:
            if update_result.error == ErrorCodes.STATE_CONFLICT:
                self.logger.warning(f"Ignoring {event.event_type} for order {order_id}: {update_result.error_detail}")
                return service_ok(WebhookOutcome(event.event_type, WebhookAction.CONFLICT, order_id))
            return update_result

        if not order.status_changed:
            # A concurrent delivery applied the same transition first
            self.logger.info(f"Order {order_id} became {target.value} concurrently, duplicate {event.event_type} ignored")
            return service_ok(WebhookOutcome(event.event_type, WebhookAction.DUPLICATE, order_id))

        if not order.payment_session_id and event.session_id:
            attach_result = self.order_service.attach_payment_session(order, event.session_id)
            if not attach_result.ok:
                self.logger.warning(f"Could not backfill session id on order {order_id}: {attach_result.error_detail}")

        PaymentAuditLogger.log_order_status_change(order_id, target.value, event.event_type)
        action = WebhookAction.COMPLETED if target == OrderStatus.COMPLETED else WebhookAction.FAILED
        return service_ok(WebhookOutcome(event.event_type, action, order_id))
