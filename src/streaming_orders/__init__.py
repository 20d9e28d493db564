# Файл: src/streaming_orders/__init__.py

from typing import Optional

from .config import get_settings, AppConfig, DatabaseConfig, ServerConfig
from .repositories import OrderStore, StoreSession, PostgresOrderStore
from .service import OrderService
from .utils.time_utils import Clock, SystemClock, FixedClock
from .exceptions import *


def create_order_service(
    config: Optional[DatabaseConfig] = None,
    clock: Optional[Clock] = None,
) -> OrderService:
    """
    Фабрика OrderService поверх PostgreSQL.

    :param config: Настройки БД. Если не переданы, читаются из окружения.
    :param clock: Источник текущего времени (по умолчанию системные часы UTC).
    :return: Сконфигурированный OrderService; пул закрывается через service.store.aclose().
    """
    if config is None:
        config = get_settings().database

    store = PostgresOrderStore.from_config(config)
    return OrderService(store, clock=clock)


__all__ = [
    "OrderService", "create_order_service",
    "OrderStore", "StoreSession", "PostgresOrderStore",
    "AppConfig", "DatabaseConfig", "ServerConfig",
    "Clock", "SystemClock", "FixedClock",
    "OrderServiceError", "InvalidProductError", "OrderNotFoundError",
    "OrderAlreadyCancelledError", "StorageError",
]
