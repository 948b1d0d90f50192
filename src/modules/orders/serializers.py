"""Order DRF serializers (read side).

Writes go through pydantic DTOs in ``dtos.py``; these serializers only
shape responses.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Order, OrderItem, OrderStatusHistory


class OrderItemSerializer(serializers.ModelSerializer):
    """Order line with a snapshot of the product's identity."""

    product_id = serializers.UUIDField(read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)
    unit = serializers.CharField(source="product.unit", read_only=True)
    farmer_id = serializers.UUIDField(source="product.owner_id", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "unit",
            "farmer_id",
            "quantity",
            "price_at_purchase",
            "subtotal",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    actor_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = OrderStatusHistory
        fields = [
            "old_status",
            "new_status",
            "actor_id",
            "note",
            "created_at",
        ]
        read_only_fields = fields


class ShippingAddressSerializer(serializers.Serializer):
    street = serializers.CharField(read_only=True)
    city = serializers.CharField(read_only=True)
    postal_code = serializers.CharField(read_only=True)
    country = serializers.CharField(read_only=True)


class OrderSerializer(serializers.ModelSerializer):
    """Full order with items and status history."""

    buyer_id = serializers.UUIDField(read_only=True)
    shipping_address = ShippingAddressSerializer(read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "buyer_id",
            "status",
            "payment_status",
            "payment_id",
            "total_price",
            "carbon_footprint",
            "shipping_address",
            "delivery_date",
            "is_reviewed",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order lists (no nested relations)."""

    buyer_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "buyer_id",
            "status",
            "payment_status",
            "total_price",
            "carbon_footprint",
            "created_at",
        ]
        read_only_fields = fields
