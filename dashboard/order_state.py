"""
Order lifecycle state machine. Valid transitions enforce business rules.
The remote order store is expected to enforce the same table; this copy
drives which choices the operator sees and rejects stale requests early.
"""
from datetime import datetime, timezone

from dashboard.errors import InvalidTransition
from dashboard.models import Order, OrderStatus, StatusHistoryEntry

S = OrderStatus

# Current status -> allowed next statuses
VALID_TRANSITIONS: dict[OrderStatus, tuple[OrderStatus, ...]] = {
    S.PAYMENT_PENDING: (S.PENDING, S.CANCELLED),
    S.PENDING: (S.PROCESSING, S.CANCELLED),
    S.PROCESSING: (S.SHIPPED, S.CANCELLED),
    S.SHIPPED: (S.DELIVERED, S.RETURNED),
    S.DELIVERED: (S.RETURNED, S.REFUNDED),
    S.RETURNED: (S.REFUNDED,),
    S.CANCELLED: (),  # terminal
    S.REFUNDED: (),  # terminal
}


def allowed_transitions(current: OrderStatus | str) -> tuple[OrderStatus, ...]:
    return VALID_TRANSITIONS.get(OrderStatus(current), ())


def can_transition(current: OrderStatus | str, target: OrderStatus | str) -> bool:
    """True if target is allowed after current."""
    return OrderStatus(target) in allowed_transitions(current)


def is_terminal(status: OrderStatus | str) -> bool:
    return not allowed_transitions(status)


def require_transition(current: OrderStatus | str, target: OrderStatus | str) -> None:
    """Raise InvalidTransition if target is not reachable from current. No side effects."""
    if not can_transition(current, target):
        raise InvalidTransition(OrderStatus(current).value, OrderStatus(target).value)


def record_transition(
    order: Order,
    target: OrderStatus | str,
    comment: str = "",
    at: datetime | None = None,
) -> Order:
    """
    Return a copy of order moved to target with exactly one history entry appended.
    The input order is left untouched.
    """
    target = OrderStatus(target)
    require_transition(order.status, target)
    entry = StatusHistoryEntry(
        order_id=order.id,
        previous_status=order.status,
        new_status=target,
        comment=comment,
        created_at=at or datetime.now(timezone.utc),
    )
    return order.model_copy(
        update={
            "status": target,
            "status_history": [*order.status_history, entry],
        }
    )
