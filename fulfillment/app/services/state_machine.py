"""
Order state machine.

One transition table shared by the operator and seller call sites. The
machine is a pure function of (current status, action); who is allowed to
ask for an action is decided in services/authorization.py.
"""
from typing import Dict, FrozenSet, List, NamedTuple, Optional, Union

from fulfillment.app.core.constants import (
    CANCELLED_AT,
    CONFIRMED_AT,
    DELIVERED_AT,
    PACKED_AT,
    SHIPPED_AT,
    TERMINAL_ORDER_STATUSES,
    OrderAction,
    OrderStatus,
)
from fulfillment.app.core.exceptions import InvalidTransitionError


class Transition(NamedTuple):
    sources: FrozenSet[OrderStatus]
    target: OrderStatus
    timestamp_field: str


TRANSITIONS: Dict[OrderAction, Transition] = {
    OrderAction.CONFIRM: Transition(
        frozenset({OrderStatus.PENDING}), OrderStatus.CONFIRMED, CONFIRMED_AT,
    ),
    OrderAction.PACK: Transition(
        frozenset({OrderStatus.CONFIRMED}), OrderStatus.PACKED, PACKED_AT,
    ),
    OrderAction.HANDOVER: Transition(
        frozenset({OrderStatus.PACKED}), OrderStatus.SHIPPING, SHIPPED_AT,
    ),
    OrderAction.DELIVER: Transition(
        frozenset({OrderStatus.SHIPPING}), OrderStatus.DELIVERED, DELIVERED_AT,
    ),
    # Not available once the parcel has been handed over
    OrderAction.CANCEL: Transition(
        frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PACKED}),
        OrderStatus.CANCELLED,
        CANCELLED_AT,
    ),
}


def _coerce_status(value: Union[OrderStatus, str]) -> Optional[OrderStatus]:
    try:
        return OrderStatus(value)
    except ValueError:
        return None


def _coerce_action(value: Union[OrderAction, str]) -> Optional[OrderAction]:
    try:
        return OrderAction(value)
    except ValueError:
        return None


def plan_transition(
    current: Union[OrderStatus, str],
    action: Union[OrderAction, str],
    order_id: Optional[str] = None,
) -> Transition:
    """
    Look up the transition for `action` from `current`.

    Raises:
        InvalidTransitionError: unknown action/status, or `current` is not an
            allowed source for `action`.
    """
    status = _coerce_status(current)
    act = _coerce_action(action)
    transition = TRANSITIONS.get(act) if act is not None else None
    if status is None or transition is None or status not in transition.sources:
        raise InvalidTransitionError(
            getattr(current, "value", current),
            getattr(action, "value", action),
            order_id,
        )
    return transition


def next_status(current: Union[OrderStatus, str], action: Union[OrderAction, str]) -> OrderStatus:
    """Return the status reached by applying `action` to `current`."""
    return plan_transition(current, action).target


def available_actions(current: Union[OrderStatus, str]) -> List[OrderAction]:
    """Actions the table allows from `current`, in declaration order."""
    status = _coerce_status(current)
    if status is None:
        return []
    return [action for action, t in TRANSITIONS.items() if status in t.sources]


def is_terminal(current: Union[OrderStatus, str]) -> bool:
    return _coerce_status(current) in TERMINAL_ORDER_STATUSES
