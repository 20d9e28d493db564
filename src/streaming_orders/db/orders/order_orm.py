# streaming_orders/db/orders/order_orm.py
from __future__ import annotations
from uuid import UUID
from datetime import datetime
from typing import List, Optional
from sqlalchemy import Text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..base import Base, UTCDateTime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .subscription_orm import SubscriptionORM
    from .cancellation_orm import OrderCancellationORM

class OrderORM(Base):
    __tablename__ = "orders"

    # id генерирует сервис, а не БД
    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    product_id: Mapped[str] = mapped_column(Text, nullable=False)

    # Статус заказа: 'active' или 'cancelled'. Обратного перехода нет.
    status: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    # Связи
    subscriptions: Mapped[List["SubscriptionORM"]] = relationship(back_populates="order", cascade="all, delete-orphan")
    cancellation: Mapped[Optional["OrderCancellationORM"]] = relationship(back_populates="order", cascade="all, delete-orphan")
