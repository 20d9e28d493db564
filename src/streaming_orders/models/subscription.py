from __future__ import annotations

import enum
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from .base import ApiModel


class SubscriptionStatus(str, enum.Enum):
    active    = "active"
    expired   = "expired"
    cancelled = "cancelled"


class Subscription(ApiModel):
    id: UUID
    order_id: UUID
    user_id: str
    product_id: str
    start_date: datetime
    end_date: datetime
    status: SubscriptionStatus
    cancelled_at: Optional[datetime] = None
    effective_end_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    def is_active_at(self, now: datetime) -> bool:
        """Активна, если статус active и start_date <= now < end_date."""
        return self.status == SubscriptionStatus.active and self.start_date <= now < self.end_date


class SubscriptionStatusResponse(ApiModel):
    user_id: str
    is_subscribed: bool
    active_subscriptions: List[Subscription] = []
    subscription_count: int = 0
