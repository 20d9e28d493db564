"""
In-memory OrderStore для тестов сервиса и HTTP-слоя.

Повторяет семантику PostgresOrderStore: commit() работает на копии
состояния и публикует её только при успешном завершении; commit'ы
выполняются строго по очереди.
"""

import asyncio
import copy
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set
from uuid import UUID

from streaming_orders.exceptions import StorageError
from streaming_orders.models import Order, OrderCancellation, Subscription
from streaming_orders.repositories.store import OrderStore, StoreSession


T0 = datetime(2024, 1, 31, 12, 0, 0, tzinfo=timezone.utc)


class SimulatedDriverError(ConnectionError):
    """Имитация падения соединения с БД."""


class _State:
    def __init__(self):
        self.orders: Dict[UUID, Order] = {}
        self.subscriptions: Dict[UUID, Subscription] = {}
        self.cancellations: Dict[UUID, OrderCancellation] = {}


class InMemoryStoreSession(StoreSession):
    def __init__(self, state: _State, failing: Set[str]):
        self._state = state
        self._failing = failing

    def _maybe_fail(self, operation: str) -> None:
        if operation in self._failing:
            raise SimulatedDriverError(f"connection reset during {operation}")

    async def create_order(self, order: Order) -> UUID:
        self._maybe_fail("create_order")
        self._state.orders[order.id] = order
        return order.id

    async def find_order(self, order_id: UUID, *, for_update: bool = False) -> Optional[Order]:
        self._maybe_fail("find_order")
        return self._state.orders.get(order_id)

    async def find_orders_by_user(self, user_id: str) -> List[Order]:
        self._maybe_fail("find_orders_by_user")
        orders = [o for o in self._state.orders.values() if o.user_id == user_id]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    async def update_order(self, order: Order) -> None:
        self._maybe_fail("update_order")
        current = self._state.orders.get(order.id)
        if current is not None:
            self._state.orders[order.id] = current.model_copy(
                update={"status": order.status, "updated_at": order.updated_at}
            )

    async def create_subscription(self, subscription: Subscription) -> UUID:
        self._maybe_fail("create_subscription")
        if subscription.order_id not in self._state.orders:
            raise SimulatedDriverError("foreign key violation: subscriptions.order_id")
        self._state.subscriptions[subscription.id] = subscription
        return subscription.id

    async def find_subscriptions_by_user(self, user_id: str) -> List[Subscription]:
        self._maybe_fail("find_subscriptions_by_user")
        subs = [s for s in self._state.subscriptions.values() if s.user_id == user_id]
        return sorted(subs, key=lambda s: s.created_at, reverse=True)

    async def find_active_subscriptions_by_user(
        self, user_id: str, now: Optional[datetime] = None
    ) -> List[Subscription]:
        self._maybe_fail("find_active_subscriptions_by_user")
        now = now or datetime.now(timezone.utc)
        subs = [
            s for s in self._state.subscriptions.values()
            if s.user_id == user_id and s.is_active_at(now)
        ]
        return sorted(subs, key=lambda s: s.created_at, reverse=True)

    async def find_subscriptions_by_order(self, order_id: UUID) -> List[Subscription]:
        self._maybe_fail("find_subscriptions_by_order")
        return [s for s in self._state.subscriptions.values() if s.order_id == order_id]

    async def update_subscription(self, subscription: Subscription) -> None:
        self._maybe_fail("update_subscription")
        current = self._state.subscriptions.get(subscription.id)
        if current is not None:
            self._state.subscriptions[subscription.id] = current.model_copy(update={
                "status": subscription.status,
                "cancelled_at": subscription.cancelled_at,
                "effective_end_date": subscription.effective_end_date,
                "updated_at": subscription.updated_at,
            })

    async def create_order_cancellation(self, cancellation: OrderCancellation) -> UUID:
        self._maybe_fail("create_order_cancellation")
        if any(c.order_id == cancellation.order_id for c in self._state.cancellations.values()):
            raise SimulatedDriverError("unique violation: order_cancellations.order_id")
        self._state.cancellations[cancellation.id] = cancellation
        return cancellation.id

    async def find_order_cancellation(self, order_id: UUID) -> Optional[OrderCancellation]:
        self._maybe_fail("find_order_cancellation")
        for cancellation in self._state.cancellations.values():
            if cancellation.order_id == order_id:
                return cancellation
        return None


class InMemoryOrderStore(OrderStore):
    def __init__(self):
        self.state = _State()
        self.failing: Set[str] = set()
        self.commits = 0
        self.reachable = True
        self._lock = asyncio.Lock()

    def fail_on(self, *operations: str) -> None:
        self.failing.update(operations)

    async def commit(self, work):
        async with self._lock:
            draft = copy.deepcopy(self.state)
            try:
                result = await work(InMemoryStoreSession(draft, self.failing))
            except SimulatedDriverError as e:
                raise StorageError("Database operation failed.", cause=e) from e
            self.state = draft
            self.commits += 1
            return result

    async def check_connection(self) -> None:
        if not self.reachable:
            raise StorageError("Database is not reachable.", cause=SimulatedDriverError("refused"))
