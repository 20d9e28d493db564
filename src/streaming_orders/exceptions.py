from uuid import UUID


class OrderServiceError(Exception):
    """Base class."""


class InvalidProductError(OrderServiceError):
    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Invalid product: {product_id}")


class OrderNotFoundError(OrderServiceError):
    def __init__(self, order_id: UUID):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class OrderAlreadyCancelledError(OrderServiceError):
    def __init__(self, order_id: UUID):
        self.order_id = order_id
        super().__init__(f"Order already cancelled: {order_id}")


class StorageError(OrderServiceError):
    """
    Any failure of the underlying database or driver.
    The original exception is kept in `cause` (and chained via `from`);
    `public_message` is what may be shown outside the process.
    """

    public_message = "Internal server error"

    def __init__(self, message: str, cause: BaseException | None = None):
        self.cause = cause
        super().__init__(message)
