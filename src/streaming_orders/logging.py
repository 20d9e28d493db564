import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any, Mapping, Optional
from uuid import UUID

CORRELATION_ID_HEADER = "X-Correlation-ID"

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def new_correlation_id() -> str:
    return str(uuid.uuid4())


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def set_correlation_id(value: Optional[str]):
    """Устанавливает id для текущей задачи; возвращает токен для reset_correlation_id."""
    return _correlation_id.set(value)


def reset_correlation_id(token) -> None:
    _correlation_id.reset(token)


class CorrelationIdFilter(logging.Filter):
    """Проставляет correlation id текущего запроса в каждую запись лога."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get()
        return True


class LoggingContext:
    """
    Неизменяемый набор полей для структурных логов.
    Каждый with_* возвращает новый контекст:

        ctx = LoggingContext.for_operation("cancel_order").with_order_id(order_id)
        logger.info("Order cancelled", extra=ctx.extra())
    """

    __slots__ = ("_fields",)

    def __init__(self, fields: Optional[Mapping[str, str]] = None):
        self._fields = dict(fields or {})

    @classmethod
    def empty(cls) -> "LoggingContext":
        return cls()

    @classmethod
    def for_operation(cls, operation: str) -> "LoggingContext":
        return cls().with_operation(operation)

    def with_custom(self, key: str, value: Any) -> "LoggingContext":
        return LoggingContext({**self._fields, key: str(value)})

    def with_operation(self, operation: str) -> "LoggingContext":
        return self.with_custom("operation", operation)

    def with_user_id(self, user_id: str) -> "LoggingContext":
        return self.with_custom("user_id", user_id)

    def with_order_id(self, order_id: UUID) -> "LoggingContext":
        return self.with_custom("order_id", order_id)

    def with_subscription_id(self, subscription_id: UUID) -> "LoggingContext":
        return self.with_custom("subscription_id", subscription_id)

    def with_product_id(self, product_id: str) -> "LoggingContext":
        return self.with_custom("product_id", product_id)

    def with_cancellation_id(self, cancellation_id: UUID) -> "LoggingContext":
        return self.with_custom("cancellation_id", cancellation_id)

    def to_dict(self) -> dict[str, str]:
        return dict(self._fields)

    def extra(self) -> dict[str, Any]:
        return {"context": self.to_dict()}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = {
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id:
            base["correlation_id"] = correlation_id
        context = getattr(record, "context", None)
        if isinstance(context, Mapping):
            base.update(context)
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False, default=str)


def format_duration(start: float) -> str:
    """Время с момента `start` (time.perf_counter()) в миллисекундах."""
    return f"{int((time.perf_counter() - start) * 1000)}ms"


def configure(level: str = "INFO") -> None:
    """Ставит JSON-хендлер на stdout. Вызывается явно сервером и CLI."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(CorrelationIdFilter())
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), handlers=[handler], force=True)
