"""
Infrastructure Package
======================

Abstraction layers for external dependencies.

Modules:
    - payments: Payment provider abstraction (Stripe)
    - observability: OpenTelemetry tracing setup
    - container: Lazily built, cached providers and domain services
"""
