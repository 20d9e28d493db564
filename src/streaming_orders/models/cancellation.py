from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional
from uuid import UUID

from .base import ApiModel


class CancellationReason(str, enum.Enum):
    user_request    = "user_request"
    payment_failure = "payment_failure"
    violation       = "violation"
    other           = "other"


class CancellationType(str, enum.Enum):
    immediate     = "immediate"
    end_of_period = "end_of_period"


class CancelledBy(str, enum.Enum):
    user   = "user"
    system = "system"
    admin  = "admin"


class OrderCancellation(ApiModel):
    id: UUID
    order_id: UUID
    reason: CancellationReason
    cancellation_type: CancellationType
    notes: Optional[str] = None
    cancelled_at: datetime
    cancelled_by: CancelledBy
    # immediate -> cancelled_at; end_of_period -> исходный end_date подписки
    effective_date: datetime
    created_at: datetime
    updated_at: datetime


# Тело PUT /orders/{id}/cancel; все поля необязательны
class CancelOrderRequest(ApiModel):
    reason: Optional[CancellationReason] = None
    cancellation_type: Optional[CancellationType] = None
    notes: Optional[str] = None
