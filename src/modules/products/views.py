"""Catalog API views.

Exposes ``ProductService`` over HTTP.  Browsing (list, retrieve, tracking,
farmer catalog) is public; every mutation requires a token and is checked
for ownership by the service.  Domain exceptions propagate to the API
exception handler.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.principal import Principal
from modules.core.dtos import build_dto
from modules.products.dtos import (
    CreateProductDTO,
    UpdateProductDTO,
    UpdateProductStatusDTO,
)
from modules.products.filters import ProductFilter
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import ProductDetailSerializer, ProductSerializer
from modules.products.services import ProductService

PUBLIC_ACTIONS = {"list", "retrieve", "tracking", "farmer"}


class ProductViewSet(GenericViewSet):
    """Catalog endpoints; all ORM access goes through the service layer."""

    queryset = Product.objects.none()
    serializer_class = ProductSerializer
    filterset_class = ProductFilter
    search_fields = ["name", "description"]
    ordering_fields = ["price", "created_at", "average_rating", "name"]
    ordering = ["-created_at"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(repository=ProductDjangoRepository())

    def get_permissions(self):
        if self.action in PUBLIC_ACTIONS:
            return [AllowAny()]
        return [IsAuthenticated()]

    def get_queryset(self):
        return self._service.list_products()

    def _principal(self, request: Request) -> Principal:
        return Principal.from_user(request.user)

    # ------------------------------------------------------------------
    # Browse
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/products/"""
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        serializer = ProductSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        product = self._service.get_product(pk)
        return Response(ProductDetailSerializer(product).data)

    @action(detail=False, methods=["get"], url_path=r"tracking/(?P<tracking_id>[^/.]+)")
    def tracking(self, request: Request, tracking_id: str | None = None) -> Response:
        """GET /api/v1/products/tracking/{tracking_id}/"""
        product = self._service.track_product(tracking_id)
        return Response(ProductDetailSerializer(product).data)

    @action(detail=False, methods=["get"], url_path=r"farmer/(?P<farmer_id>[^/.]+)")
    def farmer(self, request: Request, farmer_id: str | None = None) -> Response:
        """GET /api/v1/products/farmer/{farmer_id}/"""
        queryset = self.filter_queryset(self._service.list_farmer_products(farmer_id))
        page = self.paginate_queryset(queryset)
        serializer = ProductSerializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    # ------------------------------------------------------------------
    # Manage
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        dto = build_dto(CreateProductDTO, request.data)
        product = self._service.create_product(self._principal(request), dto)
        return Response(
            ProductDetailSerializer(product).data, status=status.HTTP_201_CREATED
        )

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/"""
        dto = build_dto(UpdateProductDTO, request.data)
        product = self._service.update_product(self._principal(request), pk, dto)
        return Response(ProductDetailSerializer(product).data)

    @action(detail=True, methods=["patch"], url_path="status")
    def update_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/status/"""
        dto = build_dto(UpdateProductStatusDTO, request.data)
        product = self._service.update_status(self._principal(request), pk, dto)
        return Response(ProductDetailSerializer(product).data)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/"""
        self._service.delete_product(self._principal(request), pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
