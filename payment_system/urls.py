from django.urls import path

from .api.views import payment_views

app_name = 'payment_system'

urlpatterns = [
    # Stripe Checkout endpoints
    path('checkout/', payment_views.create_checkout_session, name='create_checkout_session'),
    path('checkout/success/', payment_views.checkout_success, name='checkout_success'),
    path('checkout/cancel/', payment_views.checkout_cancel, name='checkout_cancel'),

    # Webhook endpoints
    path('webhooks/stripe/', payment_views.StripeWebhookView.as_view(), name='stripe_webhook'),
]
