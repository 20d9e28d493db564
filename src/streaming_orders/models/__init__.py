from .base import ApiModel
from .order import Product, OrderStatus, Order, CreateOrderRequest
from .subscription import SubscriptionStatus, Subscription, SubscriptionStatusResponse
from .cancellation import (
    CancellationReason,
    CancellationType,
    CancelledBy,
    OrderCancellation,
    CancelOrderRequest,
)

__all__ = [
    "ApiModel",
    "Product",
    "OrderStatus",
    "Order",
    "CreateOrderRequest",
    "SubscriptionStatus",
    "Subscription",
    "SubscriptionStatusResponse",
    "CancellationReason",
    "CancellationType",
    "CancelledBy",
    "OrderCancellation",
    "CancelOrderRequest",
]
