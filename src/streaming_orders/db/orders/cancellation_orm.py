# streaming_orders/db/orders/cancellation_orm.py
from __future__ import annotations
from uuid import UUID
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Text, ForeignKey
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from ..base import Base, UTCDateTime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .order_orm import OrderORM

class OrderCancellationORM(Base):
    """Аудит отмены заказа. Одна запись на заказ, после создания не меняется."""
    __tablename__ = "order_cancellations"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    order_id: Mapped[UUID] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )

    # 'user_request', 'payment_failure', 'violation', 'other'
    reason: Mapped[str] = mapped_column(String(50), nullable=False)
    # 'immediate' или 'end_of_period'
    cancellation_type: Mapped[str] = mapped_column(String(20), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    cancelled_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    # 'user', 'system', 'admin'
    cancelled_by: Mapped[str] = mapped_column(String(20), nullable=False)
    effective_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    order: Mapped["OrderORM"] = relationship(back_populates="cancellation")
