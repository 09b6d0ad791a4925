"""
Role-based permission to invoke order actions.

Layered on top of the state machine: the table decides what is possible from
a status, this module decides who may ask for it.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from fulfillment.app.core.constants import OrderAction
from fulfillment.app.core.exceptions import ActionNotPermittedError
from fulfillment.app.schemas import OrderSnapshot
from fulfillment.app.services.state_machine import available_actions


class ActorRole(str, Enum):
    OPERATOR = "operator"
    SELLER = "seller"
    CUSTOMER = "customer"


@dataclass(frozen=True)
class Actor:
    role: ActorRole
    user_id: Optional[str] = None


ROLE_ACTIONS: Dict[ActorRole, FrozenSet[OrderAction]] = {
    ActorRole.OPERATOR: frozenset(OrderAction),
    ActorRole.SELLER: frozenset(OrderAction),
    # Customers can only withdraw their own order
    ActorRole.CUSTOMER: frozenset({OrderAction.CANCEL}),
}


def _owns(actor: Actor, order: OrderSnapshot) -> bool:
    if actor.role == ActorRole.OPERATOR:
        return True
    if actor.user_id is None:
        return False
    if actor.role == ActorRole.SELLER:
        return order.seller_id == actor.user_id
    return order.customer_id == actor.user_id


def is_permitted(actor: Actor, order: OrderSnapshot, action: OrderAction) -> bool:
    return action in ROLE_ACTIONS.get(actor.role, frozenset()) and _owns(actor, order)


def authorize(actor: Actor, order: OrderSnapshot, action: OrderAction) -> None:
    """Raise ActionNotPermittedError unless `actor` may request `action` on `order`."""
    if not is_permitted(actor, order, action):
        raise ActionNotPermittedError(order.id, actor.role.value, getattr(action, "value", action))


def permitted_actions(actor: Actor, order: OrderSnapshot) -> List[OrderAction]:
    """Actions that are both defined from the order's status and allowed for the actor."""
    return [a for a in available_actions(order.status) if is_permitted(actor, order, a)]
