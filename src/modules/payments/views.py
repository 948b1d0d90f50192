"""Payment API views.

``PaymentIntentView`` is called by the buyer's client; ``StripeWebhookView``
is called by the provider and authenticates through the signature header
instead of a token.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.principal import Principal
from modules.core.dtos import build_dto
from modules.orders.views import build_order_service
from modules.payments.dtos import CreatePaymentIntentDTO, WebhookEventDTO
from modules.payments.gateway import StripeGateway
from modules.payments.services import PaymentService


def build_payment_service() -> PaymentService:
    return PaymentService(
        order_service=build_order_service(),
        gateway=StripeGateway.from_settings(),
    )


class PaymentIntentView(APIView):
    """POST /api/v1/payments/intent/"""

    permission_classes = [IsAuthenticated]

    def post(self, request: Request) -> Response:
        dto = build_dto(CreatePaymentIntentDTO, request.data)
        intent = build_payment_service().create_payment_intent(
            Principal.from_user(request.user), str(dto.order_id)
        )
        return Response(intent.model_dump(mode="json"), status=status.HTTP_201_CREATED)


class StripeWebhookView(APIView):
    """POST /api/v1/payments/webhook/"""

    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = []

    def post(self, request: Request) -> Response:
        gateway = StripeGateway.from_settings()
        payload = gateway.parse_event(request.body, request.headers.get("Stripe-Signature", ""))
        service = PaymentService(order_service=build_order_service(), gateway=gateway)
        service.handle_event(WebhookEventDTO.from_payload(payload))
        return Response({"received": True})
