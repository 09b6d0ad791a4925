"""
Unified base exception classes for the fulfillment core.

Every error carries a status_code so a service layer that owns HTTP/RPC
handling can map it without this package knowing about transports.
"""
from typing import Optional


class ServiceError(Exception):
    """Base exception for all service-layer errors."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class FulfillmentError(ServiceError):
    """Base exception for order fulfillment errors."""


class InvalidTransitionError(FulfillmentError):
    """The requested action is not defined from the order's current status."""

    def __init__(self, current: str, action: str, order_id: Optional[str] = None):
        self.current = current
        self.action = action
        self.order_id = order_id
        prefix = f"Order {order_id}: " if order_id is not None else ""
        super().__init__(
            f"{prefix}cannot '{action}' an order in status '{current}'",
            409,
        )


class OrderBusyError(FulfillmentError):
    """Another dispatch for the same order is still in flight."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} is busy: another action is in progress", 409)


class RepositoryError(FulfillmentError):
    """The persistence layer failed; the transition is not assumed applied."""

    def __init__(self, message: str):
        super().__init__(message, 502)


class OrderNotFoundError(FulfillmentError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found", 404)


class ActionNotPermittedError(FulfillmentError):
    def __init__(self, order_id: str, role: str, action: str):
        self.order_id = order_id
        self.role = role
        self.action = action
        super().__init__(f"Role '{role}' may not '{action}' order {order_id}", 403)
