"""
Security and audit helpers for payment processing
"""
import logging

logger = logging.getLogger(__name__)


def get_client_ip(request):
    """Get real client IP address"""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip


class PaymentAuditLogger:
    """Audit logging for checkout and webhook operations"""

    @staticmethod
    def log_checkout_attempt(order_id, amount, customer_email, ip_address):
        """Log checkout session creation attempt"""
        logger.info(
            "Checkout attempt",
            extra={
                'order_id': order_id,
                'amount': str(amount),
                'customer_email': customer_email,
                'ip_address': ip_address,
                'event_type': 'checkout_attempt'
            }
        )

    @staticmethod
    def log_checkout_failure(order_id, amount, error_message):
        """Log failed checkout session creation"""
        logger.warning(
            "Checkout failed",
            extra={
                'order_id': order_id,
                'amount': str(amount),
                'error_message': error_message,
                'event_type': 'checkout_failure'
            }
        )

    @staticmethod
    def log_order_status_change(order_id, status, source):
        """Log a payment-driven order status change"""
        logger.info(
            f"Order {order_id} marked {status}",
            extra={
                'order_id': order_id,
                'status': status,
                'source': source,
                'event_type': 'order_status_change'
            }
        )

    @staticmethod
    def log_security_event(event_type, ip_address, user_id=None, details=None):
        """Log security-related events"""
        logger.warning(
            f"Security event: {event_type}",
            extra={
                'event_type': f'security_{event_type}',
                'ip_address': ip_address,
                'user_id': user_id,
                'details': details
            }
        )
