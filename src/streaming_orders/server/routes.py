# src/streaming_orders/server/routes.py
from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status

from streaming_orders.exceptions import OrderNotFoundError, StorageError
from streaming_orders.models import (
    CancelOrderRequest,
    CreateOrderRequest,
    Order,
    OrderCancellation,
    Subscription,
    SubscriptionStatusResponse,
)
from streaming_orders.service import OrderService


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


ServiceDep = Annotated[OrderService, Depends(get_order_service)]

router = APIRouter(tags=["Orders"])


@router.post("/orders", response_model=Order, status_code=status.HTTP_201_CREATED)
async def create_order(body: CreateOrderRequest, service: ServiceDep):
    """Создаёт заказ и подписку. Неизвестный productId -> 400."""
    return await service.create_order(body)


@router.get("/orders/{order_id}", response_model=Order)
async def get_order(order_id: UUID, service: ServiceDep):
    order = await service.get_order(order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    return order


@router.put("/orders/{order_id}/cancel", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_order(
    order_id: UUID,
    service: ServiceDep,
    body: Optional[CancelOrderRequest] = Body(None),
):
    """
    Отменяет заказ. Тело необязательно: без него - reason=user_request,
    cancellationType=immediate.
    """
    await service.cancel_order(order_id, body)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/orders/{order_id}/cancellation", response_model=OrderCancellation)
async def get_order_cancellation(order_id: UUID, service: ServiceDep):
    cancellation = await service.get_order_cancellation(order_id)
    if cancellation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order cancellation not found")
    return cancellation


@router.get("/users/{user_id}/orders", response_model=List[Order])
async def get_user_orders(user_id: str, service: ServiceDep):
    return await service.get_user_orders(user_id)


@router.get("/users/{user_id}/subscriptions", response_model=List[Subscription])
async def get_user_subscriptions(user_id: str, service: ServiceDep):
    return await service.get_user_subscriptions(user_id)


@router.get("/users/{user_id}/subscription-status", response_model=SubscriptionStatusResponse)
async def get_user_subscription_status(user_id: str, service: ServiceDep):
    return await service.get_user_subscription_status(user_id)


@router.get("/health", tags=["Health"])
async def health(service: ServiceDep):
    try:
        await service.store.check_connection()
    except StorageError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable")
    return {"status": "ok", "service": "streaming-orders"}
