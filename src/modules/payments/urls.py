"""Payment URL configuration."""

from django.urls import path

from modules.payments.views import PaymentIntentView, StripeWebhookView

urlpatterns = [
    path("payments/intent/", PaymentIntentView.as_view(), name="payment-intent"),
    path("payments/webhook/", StripeWebhookView.as_view(), name="payment-webhook"),
]
