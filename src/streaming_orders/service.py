import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from streaming_orders.exceptions import OrderAlreadyCancelledError, OrderNotFoundError, OrderServiceError, StorageError
from streaming_orders.logging import LoggingContext
from streaming_orders.models import (
    CancellationReason,
    CancellationType,
    CancelledBy,
    CancelOrderRequest,
    CreateOrderRequest,
    Order,
    OrderCancellation,
    OrderStatus,
    Product,
    Subscription,
    SubscriptionStatus,
    SubscriptionStatusResponse,
)
from streaming_orders.repositories.store import OrderStore, StoreSession
from streaming_orders.utils.time_utils import Clock, SystemClock, add_calendar_period, truncate_to_seconds


class OrderService:
    """
    Жизненный цикл заказов и подписок.

    Единственное место с бизнес-правилами: создание заказа вместе с подпиской,
    отмена заказа (заказ + все его подписки + запись аудита) и выборки.
    Каждая операция, которой нужна атомарность, - ровно один store.commit().
    """

    def __init__(
        self,
        store: OrderStore,
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.logger = logger or logging.getLogger(__name__)

    # ――― commands ――― #

    async def create_order(self, request: CreateOrderRequest) -> Order:
        """
        Создаёт заказ со статусом active и подписку на срок продукта.
        Заказ и подписка записываются одной транзакцией.
        """
        ctx = (
            LoggingContext.for_operation("create_order")
            .with_user_id(request.user_id)
            .with_product_id(request.product_id)
        )
        try:
            product = Product.from_id(request.product_id)
        except OrderServiceError:
            self.logger.warning("Rejected order for unknown product", extra=ctx.extra())
            raise

        now = self._now()
        order = Order(
            id=uuid4(),
            user_id=request.user_id,
            product_id=product.value,
            status=OrderStatus.active,
            created_at=now,
            updated_at=now,
        )
        subscription = self._new_subscription(order, product, now)

        async def work(tx: StoreSession) -> None:
            await tx.create_order(order)
            await tx.create_subscription(subscription)

        await self._commit(work, ctx)
        self.logger.info(
            "Order created",
            extra=ctx.with_order_id(order.id).with_subscription_id(subscription.id).extra(),
        )
        return order

    async def cancel_order(self, order_id: UUID, request: Optional[CancelOrderRequest] = None) -> None:
        """
        Отменяет заказ и все его подписки, записывает аудит отмены.

        immediate     - подписка заканчивается сейчас;
        end_of_period - подписка доживает до исходного end_date.

        Повторная отмена - OrderAlreadyCancelledError, а не no-op.
        """
        request = request or CancelOrderRequest()
        reason = request.reason or CancellationReason.user_request
        cancellation_type = request.cancellation_type or CancellationType.immediate
        ctx = (
            LoggingContext.for_operation("cancel_order")
            .with_order_id(order_id)
            .with_custom("reason", reason.value)
            .with_custom("cancellation_type", cancellation_type.value)
        )
        now = self._now()

        async def work(tx: StoreSession) -> OrderCancellation:
            # строка заказа блокируется до конца транзакции: параллельная отмена
            # увидит уже cancelled
            order = await tx.find_order(order_id, for_update=True)
            if order is None:
                raise OrderNotFoundError(order_id)
            if order.status == OrderStatus.cancelled:
                raise OrderAlreadyCancelledError(order_id)

            subscriptions = await tx.find_subscriptions_by_order(order_id)
            effective_date = self._effective_date(cancellation_type, subscriptions, now)

            cancellation = OrderCancellation(
                id=uuid4(),
                order_id=order_id,
                reason=reason,
                cancellation_type=cancellation_type,
                notes=request.notes,
                cancelled_at=now,
                cancelled_by=CancelledBy.user,
                effective_date=effective_date,
                created_at=now,
                updated_at=now,
            )

            await tx.update_order(order.model_copy(update={"status": OrderStatus.cancelled, "updated_at": now}))
            await tx.create_order_cancellation(cancellation)
            for subscription in subscriptions:
                await tx.update_subscription(subscription.model_copy(update={
                    "status": SubscriptionStatus.cancelled,
                    "cancelled_at": now,
                    "effective_end_date": effective_date,
                    "updated_at": now,
                }))
            return cancellation

        cancellation = await self._commit(work, ctx)
        self.logger.info("Order cancelled", extra=ctx.with_cancellation_id(cancellation.id).extra())

    # ――― queries ――― #

    async def get_order(self, order_id: UUID) -> Optional[Order]:
        ctx = LoggingContext.for_operation("get_order").with_order_id(order_id)
        return await self._commit(lambda tx: tx.find_order(order_id), ctx)

    async def get_user_orders(self, user_id: str) -> List[Order]:
        ctx = LoggingContext.for_operation("get_user_orders").with_user_id(user_id)
        return await self._commit(lambda tx: tx.find_orders_by_user(user_id), ctx)

    async def get_user_subscriptions(self, user_id: str) -> List[Subscription]:
        ctx = LoggingContext.for_operation("get_user_subscriptions").with_user_id(user_id)
        return await self._commit(lambda tx: tx.find_subscriptions_by_user(user_id), ctx)

    async def get_user_subscription_status(self, user_id: str) -> SubscriptionStatusResponse:
        """
        Активные подписки пользователя на текущий момент часов сервиса.
        """
        ctx = LoggingContext.for_operation("get_user_subscription_status").with_user_id(user_id)
        now = self._now()
        active = await self._commit(lambda tx: tx.find_active_subscriptions_by_user(user_id, now), ctx)
        return SubscriptionStatusResponse(
            user_id=user_id,
            is_subscribed=len(active) > 0,
            active_subscriptions=active,
            subscription_count=len(active),
        )

    async def get_order_cancellation(self, order_id: UUID) -> Optional[OrderCancellation]:
        """None, если заказ не отменялся."""
        ctx = LoggingContext.for_operation("get_order_cancellation").with_order_id(order_id)
        return await self._commit(lambda tx: tx.find_order_cancellation(order_id), ctx)

    # ――― helpers ――― #

    def _now(self) -> datetime:
        return truncate_to_seconds(self.clock.now())

    async def _commit(self, work, ctx: LoggingContext):
        try:
            return await self.store.commit(work)
        except StorageError:
            self.logger.error("Storage failure", exc_info=True, extra=ctx.extra())
            raise
        except OrderServiceError as e:
            self.logger.warning(str(e), extra=ctx.extra())
            raise

    @staticmethod
    def _new_subscription(order: Order, product: Product, now: datetime) -> Subscription:
        return Subscription(
            id=uuid4(),
            order_id=order.id,
            user_id=order.user_id,
            product_id=order.product_id,
            start_date=now,
            end_date=add_calendar_period(now, product.duration),
            status=SubscriptionStatus.active,
            cancelled_at=None,
            effective_end_date=None,
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def _effective_date(
        cancellation_type: CancellationType,
        subscriptions: List[Subscription],
        now: datetime,
    ) -> datetime:
        if cancellation_type == CancellationType.end_of_period and subscriptions:
            return subscriptions[0].end_date
        return now
