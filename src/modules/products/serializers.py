"""Catalog DRF serializers (read side).

Writes go through pydantic DTOs in ``dtos.py``; these serializers only
shape responses.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.products.models import Product, ProductStatusHistory


class ProductStatusHistorySerializer(serializers.ModelSerializer):
    actor_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = ProductStatusHistory
        fields = ["status", "actor_id", "note", "created_at"]
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    owner_id = serializers.UUIDField(read_only=True)
    owner_name = serializers.CharField(source="owner.username", read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "owner_id",
            "owner_name",
            "name",
            "description",
            "price",
            "quantity",
            "unit",
            "category",
            "subcategory",
            "status",
            "images",
            "certificates",
            "is_certified",
            "average_rating",
            "latitude",
            "longitude",
            "harvest_date",
            "tracking_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProductDetailSerializer(ProductSerializer):
    status_history = ProductStatusHistorySerializer(many=True, read_only=True)

    class Meta(ProductSerializer.Meta):
        fields = ProductSerializer.Meta.fields + ["status_history"]
        read_only_fields = fields
