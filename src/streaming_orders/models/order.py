# Файл: streaming_orders/models/order.py

from __future__ import annotations

import enum
from datetime import datetime
from uuid import UUID

from dateutil.relativedelta import relativedelta

from streaming_orders.exceptions import InvalidProductError
from .base import ApiModel


class Product(str, enum.Enum):
    monthly = "monthly"
    annual  = "annual"

    @property
    def duration(self) -> relativedelta:
        """Срок подписки по продукту (календарный, не фиксированное число дней)."""
        if self is Product.monthly:
            return relativedelta(months=1)
        return relativedelta(years=1)

    @classmethod
    def from_id(cls, product_id: str) -> "Product":
        try:
            return cls(product_id)
        except ValueError:
            raise InvalidProductError(product_id) from None


class OrderStatus(str, enum.Enum):
    active    = "active"
    cancelled = "cancelled"


class Order(ApiModel):
    id: UUID
    user_id: str
    product_id: str
    status: OrderStatus
    created_at: datetime
    updated_at: datetime


# Тело POST /orders
class CreateOrderRequest(ApiModel):
    user_id: str
    product_id: str
