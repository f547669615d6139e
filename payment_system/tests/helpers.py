import hashlib
import hmac
import json
import time


class FakeSession(dict):
    """Stand-in for ``request.session`` in service-level tests."""

    modified = False
    session_key = "test-session"


def sign_payload(payload: str, secret: str, timestamp: int = None) -> str:
    """Build a Stripe-Signature header the way Stripe signs webhook deliveries."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def checkout_event(event_type, session_id, order_id=None, event_id="evt_test"):
    data_object = {"id": session_id, "object": "checkout.session", "metadata": {}}
    if order_id:
        data_object["metadata"]["order_id"] = str(order_id)
        data_object["client_reference_id"] = str(order_id)
    return json.dumps({"id": event_id, "type": event_type, "data": {"object": data_object}})
