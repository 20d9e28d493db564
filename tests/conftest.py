import os
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine

from streaming_orders.config import reset_settings
from streaming_orders.db.base import create_schema, drop_schema
from streaming_orders.repositories import PostgresOrderStore
from streaming_orders.server import create_app
from streaming_orders.service import OrderService
from streaming_orders.utils.time_utils import FixedClock

from containers import asyncpg_url, start_postgres
from fakes import T0, InMemoryOrderStore


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(T0)


@pytest.fixture
def memory_store() -> InMemoryOrderStore:
    return InMemoryOrderStore()


@pytest.fixture
def service(memory_store, clock) -> OrderService:
    return OrderService(memory_store, clock=clock)


@pytest.fixture
def api_client(service):
    """HTTP-клиент поверх сервиса с in-memory хранилищем."""
    with TestClient(create_app(service=service)) as client:
        yield client


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


# ――― PostgreSQL ――― #

@pytest.fixture(scope="session")
def postgres_url():
    """
    DSN тестовой PostgreSQL.
    Берётся из ORDERS_TEST_DATABASE_URL, иначе поднимается контейнер
    на всю сессию. Без Docker тесты с БД пропускаются.
    """
    url = os.environ.get("ORDERS_TEST_DATABASE_URL")
    if url:
        yield url
        return

    postgres = start_postgres("postgres:16")
    yield asyncpg_url(postgres)
    postgres.stop()


@pytest.fixture
def pg_env(postgres_url, monkeypatch):
    """Переменные окружения, которые прочитает get_settings()."""
    monkeypatch.setenv("DATABASE_URL", postgres_url)
    reset_settings()
    return postgres_url


@pytest_asyncio.fixture
async def pg_store(postgres_url):
    """
    PostgresOrderStore на чистой схеме.
    Таблицы создаются перед тестом и удаляются после него.
    """
    engine = create_async_engine(postgres_url)
    await drop_schema(engine)
    await create_schema(engine)
    store = PostgresOrderStore.from_engine(engine)
    yield store
    await drop_schema(engine)
    await store.aclose()
