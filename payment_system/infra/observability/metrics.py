from prometheus_client import Counter, Histogram


# Checkout Metrics
checkout_sessions_total = Counter("checkout_sessions_total", "Checkout session attempts", ["status"])

# Webhook Metrics
webhook_events_total = Counter("webhook_events_total", "Webhook events received", ["event_type", "outcome"])
webhook_processing_seconds = Histogram("webhook_processing_seconds", "Time spent processing a webhook event")
