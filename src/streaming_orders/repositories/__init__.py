from .store import OrderStore, StoreSession
from .pg_repositoryOrders import PostgresOrderStore, PostgresStoreSession, create_engine_from_config

__all__ = [
    "OrderStore",
    "StoreSession",
    "PostgresOrderStore",
    "PostgresStoreSession",
    "create_engine_from_config",
]
