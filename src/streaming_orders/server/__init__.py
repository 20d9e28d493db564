from .app import create_app, register_exception_handlers
from .routes import router, get_order_service

__all__ = ["create_app", "register_exception_handlers", "router", "get_order_service"]
