# streaming_orders/db/__init__.py

from .base import Base, UTCDateTime, create_schema, drop_schema

# orders -> subscriptions / order_cancellations (FK на orders.id)
from .orders.order_orm import OrderORM
from .orders.subscription_orm import SubscriptionORM
from .orders.cancellation_orm import OrderCancellationORM

from .uow import AsyncUnitOfWork


__all__ = [
    "Base",
    "UTCDateTime",
    "create_schema",
    "drop_schema",
    "OrderORM",
    "SubscriptionORM",
    "OrderCancellationORM",
    "AsyncUnitOfWork",
]
