"""
Контракт хранилища заказов.

Все операции чтения/записи живут в `StoreSession` и выполняются внутри
одной транзакции, которую открывает `OrderStore.commit`:

    order = await store.commit(lambda tx: tx.find_order(order_id))

Всё, что делает переданная функция, либо фиксируется целиком, либо
откатывается целиком.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, TypeVar
from uuid import UUID

from streaming_orders.models import Order, OrderCancellation, Subscription

T = TypeVar("T")


class StoreSession(ABC):
    """Операции над заказами, подписками и отменами в рамках одной транзакции."""

    # --- orders ---
    @abstractmethod
    async def create_order(self, order: Order) -> UUID: ...

    @abstractmethod
    async def find_order(self, order_id: UUID, *, for_update: bool = False) -> Optional[Order]:
        """for_update=True блокирует строку заказа до конца транзакции."""

    @abstractmethod
    async def find_orders_by_user(self, user_id: str) -> List[Order]:
        """Заказы пользователя, новые первыми."""

    @abstractmethod
    async def update_order(self, order: Order) -> None:
        """Перезаписывает status и updated_at по id."""

    # --- subscriptions ---
    @abstractmethod
    async def create_subscription(self, subscription: Subscription) -> UUID: ...

    @abstractmethod
    async def find_subscriptions_by_user(self, user_id: str) -> List[Subscription]:
        """Подписки пользователя, новые первыми."""

    @abstractmethod
    async def find_active_subscriptions_by_user(
        self, user_id: str, now: Optional[datetime] = None
    ) -> List[Subscription]:
        """
        status = active AND start_date <= now AND end_date > now.
        Если now не передан, используется текущее время на стороне БД.
        """

    @abstractmethod
    async def find_subscriptions_by_order(self, order_id: UUID) -> List[Subscription]: ...

    @abstractmethod
    async def update_subscription(self, subscription: Subscription) -> None:
        """Перезаписывает status, cancelled_at, effective_end_date и updated_at по id."""

    # --- cancellations ---
    @abstractmethod
    async def create_order_cancellation(self, cancellation: OrderCancellation) -> UUID: ...

    @abstractmethod
    async def find_order_cancellation(self, order_id: UUID) -> Optional[OrderCancellation]: ...


class OrderStore(ABC):

    @abstractmethod
    async def commit(self, work: Callable[[StoreSession], Awaitable[T]]) -> T:
        """
        Выполняет `work` в одной транзакции и возвращает его результат.
        Ошибки БД поднимаются как StorageError, остальные исключения
        пробрасываются без изменений (после rollback).
        """

    @abstractmethod
    async def check_connection(self) -> None:
        """Поднимает StorageError, если база недоступна."""

    async def aclose(self) -> None:
        """Освобождает ресурсы (пул соединений)."""
