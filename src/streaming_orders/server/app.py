import logging
import time
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from streaming_orders.config import AppConfig, get_settings
from streaming_orders.exceptions import (
    InvalidProductError,
    OrderAlreadyCancelledError,
    OrderNotFoundError,
    StorageError,
)
from streaming_orders.logging import (
    CORRELATION_ID_HEADER,
    format_duration,
    new_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from streaming_orders.repositories import PostgresOrderStore
from streaming_orders.service import OrderService
from .routes import router

logger = logging.getLogger(__name__)


def _error(status_code: int, code: str, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code, "message": message, **extra})


def register_exception_handlers(app: FastAPI) -> None:
    """
    Бизнес-ошибки -> конкретные HTTP-коды; ошибки БД -> 500 без деталей драйвера.
    Все ответы с ошибкой имеют вид {"error": <code>, "message": <text>}.
    """

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        # 404 'not_found', 405 'method_not_allowed', 503 'service_unavailable', ...
        code = HTTPStatus(exc.status_code).phrase.lower().replace(" ", "_")
        response = _error(exc.status_code, code, str(exc.detail))
        response.headers.update(getattr(exc, "headers", None) or {})
        return response

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return _error(
            422,
            "validation_error",
            "Request validation failed",
            details=jsonable_encoder(exc.errors()),
        )

    @app.exception_handler(InvalidProductError)
    async def _invalid_product(request: Request, exc: InvalidProductError):
        return _error(status.HTTP_400_BAD_REQUEST, "invalid_product", str(exc))

    @app.exception_handler(OrderNotFoundError)
    async def _order_not_found(request: Request, exc: OrderNotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, "order_not_found", str(exc))

    @app.exception_handler(OrderAlreadyCancelledError)
    async def _already_cancelled(request: Request, exc: OrderAlreadyCancelledError):
        return _error(status.HTTP_409_CONFLICT, "order_already_cancelled", str(exc))

    @app.exception_handler(StorageError)
    async def _storage_error(request: Request, exc: StorageError):
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", StorageError.public_message)


def create_app(service: Optional[OrderService] = None, config: Optional[AppConfig] = None) -> FastAPI:
    """
    Собирает приложение.
    Если service не передан, он создаётся в lifespan из конфигурации
    (или из переменных окружения, если не передана и она).
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if service is not None:
            app.state.order_service = service
            yield
            return
        cfg = config or get_settings().to_app_config()
        store = PostgresOrderStore.from_config(cfg.database)
        app.state.order_service = OrderService(store)
        logger.info("Order service started")
        try:
            yield
        finally:
            await store.aclose()
            logger.info("Order service stopped")

    app = FastAPI(title="Streaming Orders", lifespan=lifespan)
    if service is not None:
        app.state.order_service = service

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or new_correlation_id()
        token = set_correlation_id(correlation_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} in {format_duration(start)}",
                extra={"context": {"method": request.method, "path": request.url.path, "status": response.status_code}},
            )
            return response
        finally:
            reset_correlation_id(token)

    # последний добавленный middleware - внешний
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_ID_HEADER],
    )

    register_exception_handlers(app)
    app.include_router(router)
    return app
