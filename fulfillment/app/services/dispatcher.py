# fulfillment/app/services/dispatcher.py
"""
Guarded order dispatcher.

Runs an action through the state machine and persists the result, allowing
at most one in-flight dispatch per order id. A second request for the same
order fails fast with OrderBusyError instead of queueing behind the first;
requests for different orders never wait on each other.
"""
import asyncio
import time
from contextlib import contextmanager
from typing import Awaitable, Iterator, Optional, Set, TypeVar, Union

from fulfillment.app.core.constants import OrderAction, OrderStatus
from fulfillment.app.core.exceptions import (
    ActionNotPermittedError,
    InvalidTransitionError,
    OrderBusyError,
    OrderNotFoundError,
    RepositoryError,
)
from fulfillment.app.core.logging import get_logger, order_log_context
from fulfillment.app.core.metrics import order_dispatch_duration_seconds, order_transitions_total
from fulfillment.app.core.settings import get_settings
from fulfillment.app.services.authorization import Actor, authorize
from fulfillment.app.services.repositories import OrderRepository
from fulfillment.app.services.state_machine import plan_transition

logger = get_logger(__name__)

T = TypeVar("T")


def _metric_action(action: Union[OrderAction, str]) -> str:
    # Keep metric label values bounded to the known actions
    try:
        return OrderAction(action).value
    except ValueError:
        return "unknown"


class OrderDispatcher:
    """Applies order actions with a per-order in-flight guard."""

    def __init__(self, orders: OrderRepository, timeout: Optional[float] = None):
        self.orders = orders
        self.timeout = timeout if timeout is not None else get_settings().REPOSITORY_TIMEOUT_SECONDS
        self._in_flight: Set[str] = set()

    def is_in_flight(self, order_id: str) -> bool:
        return order_id in self._in_flight

    @property
    def in_flight(self) -> frozenset:
        return frozenset(self._in_flight)

    @contextmanager
    def _claim(self, order_id: str) -> Iterator[None]:
        # No await between the check and the add: atomic on the event loop
        if order_id in self._in_flight:
            raise OrderBusyError(order_id)
        self._in_flight.add(order_id)
        try:
            yield
        finally:
            self._in_flight.discard(order_id)

    async def _call(self, order_id: str, what: str, awaitable: Awaitable[T]) -> T:
        """Await a repository call, bounded by the timeout, as RepositoryError on failure."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except RepositoryError:
            raise
        except asyncio.TimeoutError as e:
            raise RepositoryError(
                f"Repository {what} for order {order_id} timed out after {self.timeout}s"
            ) from e
        except Exception as e:
            raise RepositoryError(str(e)) from e

    async def dispatch(
        self,
        order_id: str,
        action: Union[OrderAction, str],
        actor: Optional[Actor] = None,
    ) -> OrderStatus:
        """
        Apply `action` to the order and persist it.

        Args:
            order_id: Order to act on
            action: One of OrderAction
            actor: When given, the role/ownership check runs before the write

        Returns:
            The order's new status

        Raises:
            OrderBusyError: another dispatch for this order is in flight
            OrderNotFoundError: the repository does not know the order
            InvalidTransitionError: action not allowed from the current status
            ActionNotPermittedError: actor may not request this action
            RepositoryError: the read/write failed, timed out or updated nothing
        """
        action_label = getattr(action, "value", str(action))
        metric_action = _metric_action(action)
        started = time.perf_counter()
        result = "applied"
        with order_log_context(order_id, action_label):
            try:
                with self._claim(order_id):
                    order = await self._call(order_id, "read", self.orders.get_order(order_id))
                    if order is None:
                        raise OrderNotFoundError(order_id)

                    transition = plan_transition(order.status, action, order_id=order_id)
                    if actor is not None:
                        authorize(actor, order, OrderAction(action))

                    applied = await self._call(
                        order_id,
                        "write",
                        self.orders.apply_transition(
                            order_id,
                            transition.target,
                            transition.timestamp_field,
                            expected_status=order.status,
                        ),
                    )
                    if not applied:
                        raise RepositoryError(
                            f"Order {order_id} was not updated: its status changed "
                            f"from '{order.status.value}' before the write"
                        )

                    logger.info(
                        "Order transition applied",
                        old_status=order.status.value,
                        new_status=transition.target.value,
                    )
                    return transition.target
            except OrderBusyError:
                result = "busy"
                logger.warning("Order dispatch rejected: already in flight")
                raise
            except InvalidTransitionError as e:
                result = "invalid"
                logger.warning("Order transition rejected", current=e.current)
                raise
            except ActionNotPermittedError as e:
                result = "denied"
                logger.warning("Order action not permitted", role=e.role)
                raise
            except OrderNotFoundError:
                result = "not_found"
                raise
            except RepositoryError as e:
                result = "repository_error"
                logger.error("Order transition failed", error=e.message)
                raise
            finally:
                order_transitions_total.labels(action=metric_action, result=result).inc()
                order_dispatch_duration_seconds.labels(action=metric_action).observe(time.perf_counter() - started)
