from .order_orm import OrderORM
from .subscription_orm import SubscriptionORM
from .cancellation_orm import OrderCancellationORM

__all__ = ["OrderORM", "SubscriptionORM", "OrderCancellationORM"]
