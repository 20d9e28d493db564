# streaming_orders/db/orders/subscription_orm.py
from __future__ import annotations
from uuid import UUID
from datetime import datetime
from typing import Optional
from sqlalchemy import Text, ForeignKey
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..base import Base, UTCDateTime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .order_orm import OrderORM

class SubscriptionORM(Base):
    __tablename__ = "subscriptions"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    order_id: Mapped[UUID] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # Денормализованная копия user_id заказа: выборки по пользователю идут без JOIN.
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    product_id: Mapped[str] = mapped_column(Text, nullable=False)

    # Период действия подписки
    start_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)

    # Статус подписки: 'active', 'expired', 'cancelled'.
    status: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    # Заполняются при отмене заказа
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True, index=True)
    effective_end_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    order: Mapped["OrderORM"] = relationship(back_populates="subscriptions")
