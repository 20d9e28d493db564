# streaming_orders/repositories/pg_repositoryOrders.py

import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, TypeVar
from uuid import UUID

from sqlalchemy import func, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from streaming_orders.config import DatabaseConfig
from streaming_orders.db.base import get_session
from streaming_orders.db import AsyncUnitOfWork, OrderCancellationORM, OrderORM, SubscriptionORM
from streaming_orders.exceptions import StorageError
from streaming_orders.models import Order, OrderCancellation, Subscription, SubscriptionStatus
from .store import OrderStore, StoreSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


def create_engine_from_config(config: DatabaseConfig) -> AsyncEngine:
    return create_async_engine(
        config.get_dsn(),
        pool_size=config.max_pool_size,
        max_overflow=config.max_overflow,
        pool_timeout=config.pool_timeout,
        pool_recycle=config.pool_recycle,
        pool_pre_ping=True,
        connect_args={
            "server_settings": {
                "application_name": config.application_name
            }
        },
    )


class PostgresStoreSession(StoreSession):
    """
    Реализация StoreSession поверх одной AsyncSession.
    Бизнес-логики здесь нет: только SQL и преобразование ORM <-> модели.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    # ――― orders ――― #

    async def create_order(self, order: Order) -> UUID:
        self._session.add(OrderORM(
            id=order.id,
            user_id=order.user_id,
            product_id=order.product_id,
            status=order.status.value,
            created_at=order.created_at,
            updated_at=order.updated_at,
        ))
        await self._session.flush()
        return order.id

    async def find_order(self, order_id: UUID, *, for_update: bool = False) -> Optional[Order]:
        stmt = select(OrderORM).where(OrderORM.id == order_id)
        if for_update:
            stmt = stmt.with_for_update()
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return Order.model_validate(row) if row else None

    async def find_orders_by_user(self, user_id: str) -> List[Order]:
        stmt = (
            select(OrderORM)
            .where(OrderORM.user_id == user_id)
            .order_by(OrderORM.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [Order.model_validate(row) for row in result.scalars().all()]

    async def update_order(self, order: Order) -> None:
        await self._session.execute(
            update(OrderORM)
            .where(OrderORM.id == order.id)
            .values(status=order.status.value, updated_at=order.updated_at)
        )

    # ――― subscriptions ――― #

    async def create_subscription(self, subscription: Subscription) -> UUID:
        self._session.add(SubscriptionORM(
            id=subscription.id,
            order_id=subscription.order_id,
            user_id=subscription.user_id,
            product_id=subscription.product_id,
            start_date=subscription.start_date,
            end_date=subscription.end_date,
            status=subscription.status.value,
            cancelled_at=subscription.cancelled_at,
            effective_end_date=subscription.effective_end_date,
            created_at=subscription.created_at,
            updated_at=subscription.updated_at,
        ))
        await self._session.flush()
        return subscription.id

    async def find_subscriptions_by_user(self, user_id: str) -> List[Subscription]:
        stmt = (
            select(SubscriptionORM)
            .where(SubscriptionORM.user_id == user_id)
            .order_by(SubscriptionORM.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [Subscription.model_validate(row) for row in result.scalars().all()]

    async def find_active_subscriptions_by_user(
        self, user_id: str, now: Optional[datetime] = None
    ) -> List[Subscription]:
        # now=None -> время БД на момент запроса
        now_expr = now if now is not None else func.now()
        stmt = (
            select(SubscriptionORM)
            .where(
                SubscriptionORM.user_id == user_id,
                SubscriptionORM.status == SubscriptionStatus.active.value,
                SubscriptionORM.start_date <= now_expr,
                SubscriptionORM.end_date > now_expr,
            )
            .order_by(SubscriptionORM.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [Subscription.model_validate(row) for row in result.scalars().all()]

    async def find_subscriptions_by_order(self, order_id: UUID) -> List[Subscription]:
        stmt = (
            select(SubscriptionORM)
            .where(SubscriptionORM.order_id == order_id)
            .order_by(SubscriptionORM.created_at.asc())
        )
        result = await self._session.execute(stmt)
        return [Subscription.model_validate(row) for row in result.scalars().all()]

    async def update_subscription(self, subscription: Subscription) -> None:
        await self._session.execute(
            update(SubscriptionORM)
            .where(SubscriptionORM.id == subscription.id)
            .values(
                status=subscription.status.value,
                cancelled_at=subscription.cancelled_at,
                effective_end_date=subscription.effective_end_date,
                updated_at=subscription.updated_at,
            )
        )

    # ――― cancellations ――― #

    async def create_order_cancellation(self, cancellation: OrderCancellation) -> UUID:
        self._session.add(OrderCancellationORM(
            id=cancellation.id,
            order_id=cancellation.order_id,
            reason=cancellation.reason.value,
            cancellation_type=cancellation.cancellation_type.value,
            notes=cancellation.notes,
            cancelled_at=cancellation.cancelled_at,
            cancelled_by=cancellation.cancelled_by.value,
            effective_date=cancellation.effective_date,
            created_at=cancellation.created_at,
            updated_at=cancellation.updated_at,
        ))
        await self._session.flush()
        return cancellation.id

    async def find_order_cancellation(self, order_id: UUID) -> Optional[OrderCancellation]:
        stmt = select(OrderCancellationORM).where(OrderCancellationORM.order_id == order_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return OrderCancellation.model_validate(row) if row else None


class PostgresOrderStore(OrderStore):
    """
    OrderStore поверх PostgreSQL: каждый commit() - одна транзакция БД.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], engine: Optional[AsyncEngine] = None):
        self._session_factory = session_factory
        self._engine = engine

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> "PostgresOrderStore":
        return cls(async_sessionmaker(bind=engine, expire_on_commit=False), engine=engine)

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> "PostgresOrderStore":
        return cls.from_engine(create_engine_from_config(config))

    async def commit(self, work: Callable[[StoreSession], Awaitable[T]]) -> T:
        try:
            async with AsyncUnitOfWork(self._session_factory) as uow:
                return await work(PostgresStoreSession(uow.session))
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Transaction failed and was rolled back: {e}")
            raise StorageError("Database operation failed.", cause=e) from e

    async def check_connection(self) -> None:
        try:
            async with get_session(self._session_factory) as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            raise StorageError("Database is not reachable.", cause=e) from e

    async def aclose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
