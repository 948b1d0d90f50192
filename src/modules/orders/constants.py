"""Order domain constants.

Two independent state machines live on an order: ``OrderStatus`` and
``PaymentStatus``.  Each has its own transition tables keyed by actor
role; admins bypass the tables (see ``policies``).
"""

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PAID = "paid", "Paid"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


# Order status edges a buyer may take on their own order.
CONSUMER_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
}

# Forward-only fulfilment edges for a farmer with a product in the order.
FARMER_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PAID: {OrderStatus.PROCESSING},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
}

# Statuses from which the dedicated cancel operation is open, per role.
CONSUMER_CANCELLABLE: set[str] = {OrderStatus.PENDING, OrderStatus.PAID}
FARMER_CANCELLABLE: set[str] = {OrderStatus.PAID, OrderStatus.PROCESSING}

# Payment edges a buyer may take ("I paid").
CONSUMER_PAYMENT_TRANSITIONS: dict[str, set[str]] = {
    PaymentStatus.PENDING: {PaymentStatus.COMPLETED},
}

TERMINAL_STATES: set[str] = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}

# Entering this set deducts stock; cancelling from it gives stock back.
COMMITTED_STATES: set[str] = {OrderStatus.PAID, OrderStatus.PROCESSING}

ORDER_NUMBER_MAX_RETRIES = 5

ORDER_CREATED_NOTE = "Order created"
ORDER_CANCELLED_NOTE = "Order cancelled"
PAYMENT_COMPLETED_NOTE = "Payment completed"
PAYMENT_FAILED_NOTE = "Payment failed"

DEFAULT_COUNTRY = "Poland"
POSTAL_CODE_PATTERN = r"^\d{2}-\d{3}$"
