"""Payment DTOs.

- ``CreatePaymentIntentDTO``: request to pay for an order.
- ``PaymentIntentDTO``: what the client needs to confirm the charge.
- ``WebhookEventDTO``: the slice of a provider event the service acts on.
"""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class CreatePaymentIntentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID


class PaymentIntentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_intent_id: str
    client_secret: str
    amount: int
    currency: str


class WebhookEventDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    type: str
    payment_intent_id: str = ""
    order_id: Optional[str] = None
    failure_message: str = ""

    @classmethod
    def from_payload(cls, event: Dict[str, Any]) -> WebhookEventDTO:
        """Pick the payment intent out of a decoded provider event."""
        obj = (event.get("data") or {}).get("object") or {}
        metadata = obj.get("metadata") or {}
        last_error = obj.get("last_payment_error") or {}
        return cls(
            id=event.get("id") or "",
            type=event.get("type") or "",
            payment_intent_id=obj.get("id") or "",
            order_id=metadata.get("orderId") or None,
            failure_message=last_error.get("message") or "",
        )
