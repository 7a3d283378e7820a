"""
Read cache for orders: single orders by id, and list pages by filter set.
Only ever filled from server responses; a status change invalidates, never patches.
"""
from dashboard.models import Order, OrdersPage

ListKey = tuple[tuple[str, object], ...]


def list_key(**filters: object) -> ListKey:
    return tuple(sorted((k, v) for k, v in filters.items() if v is not None))


class OrderCache:
    def __init__(self):
        self._orders: dict[str, Order] = {}
        self._lists: dict[ListKey, OrdersPage] = {}

    def get_order(self, order_id: str) -> Order | None:
        return self._orders.get(order_id)

    def put_order(self, order: Order) -> None:
        self._orders[order.id] = order

    def get_list(self, key: ListKey) -> OrdersPage | None:
        return self._lists.get(key)

    def put_list(self, key: ListKey, page: OrdersPage) -> None:
        self._lists[key] = page

    def invalidate_order(self, order_id: str) -> None:
        self._orders.pop(order_id, None)

    def invalidate_lists(self) -> None:
        self._lists.clear()

    def clear(self) -> None:
        self._orders.clear()
        self._lists.clear()
