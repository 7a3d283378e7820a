"""
Order status changes: validate against the transition table, issue one PUT to
the order store, then invalidate and refetch. The displayed status only ever
comes from a server round-trip.

Two requests for the same order are not serialized here; the order store is
the correctness boundary and must enforce the same table.
"""
import logging

from dashboard.api_client import OrderStoreClient
from dashboard.cache import OrderCache, list_key
from dashboard.errors import InvalidTransition, NotFoundError, RemoteError
from dashboard.metrics import order_status_changes_total, order_status_rejected_total
from dashboard.models import Order, OrdersPage, OrderStatus
from dashboard.order_state import allowed_transitions, require_transition

logger = logging.getLogger(__name__)


class OrderStatusController:
    def __init__(self, orders: OrderStoreClient, cache: OrderCache | None = None):
        self._orders = orders
        self._cache = cache if cache is not None else OrderCache()

    @property
    def cache(self) -> OrderCache:
        return self._cache

    async def get_order(self, order_id: str, refresh: bool = False) -> Order:
        """Cached order, or fetch it. Raises NotFoundError / RemoteError."""
        if not refresh:
            cached = self._cache.get_order(order_id)
            if cached is not None:
                return cached
        order = await self._orders.get_order(order_id)
        self._cache.put_order(order)
        return order

    async def list_orders(self, refresh: bool = False, **filters) -> OrdersPage:
        key = list_key(**filters)
        if not refresh:
            cached = self._cache.get_list(key)
            if cached is not None:
                return cached
        page = await self._orders.list_orders(**filters)
        self._cache.put_list(key, page)
        return page

    async def available_transitions(self, order_id: str) -> tuple[OrderStatus, ...]:
        order = await self.get_order(order_id)
        return allowed_transitions(order.status)

    async def change_status(self, order_id: str, requested: OrderStatus | str) -> Order:
        """
        Move order_id to requested.
        Raises InvalidTransition (no remote call made), NotFoundError, or RemoteError
        (nothing changed locally).
        """
        requested = OrderStatus(requested)
        order = await self.get_order(order_id)
        try:
            require_transition(order.status, requested)
        except InvalidTransition:
            order_status_rejected_total.labels(
                current_status=order.status.value, requested_status=requested.value
            ).inc()
            logger.info("Rejected status change order=%s %s -> %s", order_id, order.status.value, requested.value)
            raise

        previous = order.status
        updated = await self._orders.update_status(order_id, requested)
        order_status_changes_total.labels(new_status=requested.value).inc()
        logger.info("Order %s status %s -> %s", order_id, previous.value, requested.value)

        self._cache.invalidate_order(order_id)
        self._cache.invalidate_lists()
        try:
            confirmed = await self.get_order(order_id, refresh=True)
        except (RemoteError, NotFoundError) as e:
            logger.warning("Refetch after status change failed for order=%s: %s", order_id, e)
            confirmed = updated

        self._check_server_parity(confirmed, previous, requested)
        return confirmed

    @staticmethod
    def _check_server_parity(order: Order, previous: OrderStatus, requested: OrderStatus) -> None:
        if order.status != requested:
            logger.warning(
                "Order store reports status %s for order=%s after change to %s",
                order.status.value, order.id, requested.value,
            )
            return
        last = order.status_history[-1] if order.status_history else None
        if last is None or (last.previous_status, last.new_status) != (previous, requested):
            logger.warning("Order store did not record %s -> %s in history of order=%s",
                           previous.value, requested.value, order.id)
