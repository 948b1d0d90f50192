"""Order API views.

Exposes ``OrderService`` via HTTP using a DRF ViewSet.  Domain exceptions
are not caught here: they propagate to the API exception handler, which
renders them in the standard error format.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.principal import Principal
from modules.accounts.repositories.django_repository import UserDjangoRepository
from modules.core.dtos import build_dto
from modules.orders.dtos import (
    CancelOrderDTO,
    CreateOrderDTO,
    FarmerOrderDTO,
    UpdateOrderStatusDTO,
    UpdatePaymentStatusDTO,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderListSerializer, OrderSerializer
from modules.orders.services import OrderService
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import InventoryService


def build_order_service() -> OrderService:
    product_repository = ProductDjangoRepository()
    return OrderService(
        order_repository=OrderDjangoRepository(),
        product_repository=product_repository,
        user_repository=UserDjangoRepository(),
        inventory=InventoryService(product_repository),
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer, and every query is narrowed to what the
    caller may read.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    filterset_class = OrderFilter
    search_fields = ["order_number", "shipping_city"]
    ordering_fields = ["created_at", "total_price", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "farmer"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        return self._service.list_orders(self._principal(self.request))

    def _principal(self, request: Request) -> Principal:
        return Principal.from_user(request.user)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header.
        Returns 200 if the key was already used, 201 for new orders.
        """
        dto = build_dto(
            CreateOrderDTO,
            request.data,
            idempotency_key=request.headers.get("Idempotency-Key") or None,
        )

        order, created = self._service.create_order(self._principal(request), dto)
        return Response(
            OrderSerializer(order).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (``status`` with ``all``, payment status, date range,
        total range) is handled by ``OrderFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = OrderListSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        order = self._service.get_order(self._principal(request), pk)
        return Response(OrderSerializer(order).data)

    @action(detail=False, methods=["get"])
    def farmer(self, request: Request) -> Response:
        """GET /api/v1/orders/farmer/

        Orders containing the caller's products, reduced to those lines.
        Admins pass ``?farmer_id=``.
        """
        queryset, farmer_id = self._service.farmer_orders(
            self._principal(request), request.query_params.get("farmer_id")
        )
        page = self.paginate_queryset(self.filter_queryset(queryset))
        data = [
            FarmerOrderDTO.from_entity(order, farmer_id).model_dump(mode="json")
            for order in page
        ]
        return self.get_paginated_response(data)

    @action(detail=True, methods=["get"])
    def invoice(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/invoice/"""
        invoice = self._service.get_invoice(self._principal(request), pk)
        return Response(invoice.model_dump(mode="json"))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @action(detail=True, methods=["patch"], url_path="status")
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/status/"""
        dto = build_dto(UpdateOrderStatusDTO, request.data)
        order = self._service.update_status(self._principal(request), pk, dto)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels an order and releases committed stock.
        """
        dto = build_dto(CancelOrderDTO, request.data)
        order = self._service.cancel_order(self._principal(request), pk, dto)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["patch"])
    def payment(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/payment/"""
        dto = build_dto(UpdatePaymentStatusDTO, request.data)
        order = self._service.update_payment_status(self._principal(request), pk, dto)
        return Response(OrderSerializer(order).data)
