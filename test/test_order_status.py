"""Order status controller: guard, single remote mutation, cache refresh, errors."""
import asyncio

import pytest

from _helper import FakeStore, make_order
from dashboard.api_client import OrderStoreClient
from dashboard.errors import InvalidTransition, NotFoundError, RemoteError, ValidationError
from dashboard.models import OrderStatus as S
from dashboard.order_status import OrderStatusController


def _controller(store: FakeStore) -> OrderStatusController:
    return OrderStatusController(OrderStoreClient(store.http_client()))


def test_invalid_transition_rejected_without_remote_call():
    store = FakeStore([make_order("ord-1", S.PROCESSING)])

    async def run():
        controller = _controller(store)
        with pytest.raises(ValidationError):
            await controller.change_status("ord-1", S.DELIVERED)
        return await controller.get_order("ord-1")

    order = asyncio.run(run())
    assert order.status == S.PROCESSING
    assert store.status_puts() == []
    assert store.orders["ord-1"].status == S.PROCESSING


def test_valid_transition_issues_one_put_and_records_history():
    store = FakeStore([make_order("ord-1", S.SHIPPED)])

    async def run():
        return await _controller(store).change_status("ord-1", "DELIVERED")

    order = asyncio.run(run())
    assert store.status_puts() == [("PUT", "/orders/ord-1/status", {"status": "DELIVERED"})]
    assert order.status == S.DELIVERED
    last = order.status_history[-1]
    assert (last.previous_status, last.new_status) == (S.SHIPPED, S.DELIVERED)
    assert len(order.status_history) == 1


def test_stale_cache_is_revalidated_against_cached_copy():
    store = FakeStore([make_order("ord-1", S.PENDING)])

    async def run():
        controller = _controller(store)
        await controller.get_order("ord-1")
        await controller.change_status("ord-1", S.PROCESSING)
        # second click on a stale "Mark as Processing" choice
        with pytest.raises(InvalidTransition):
            await controller.change_status("ord-1", S.PROCESSING)

    asyncio.run(run())
    assert len(store.status_puts()) == 1


def test_success_invalidates_and_refetches():
    store = FakeStore([make_order("ord-1", S.PENDING), make_order("ord-2", S.PENDING)])

    async def run():
        controller = _controller(store)
        await controller.list_orders(status=S.PENDING)
        cached_list = controller.cache.get_list((("status", S.PENDING),))
        await controller.change_status("ord-1", S.PROCESSING)
        after = controller.cache.get_order("ord-1")
        pending = await controller.list_orders(status=S.PENDING)
        return cached_list, after, pending

    cached_list, after, pending = asyncio.run(run())
    assert cached_list is not None
    assert after.status == S.PROCESSING
    assert [o.id for o in pending.orders] == ["ord-2"]
    gets = [c for c in store.calls if c[0] == "GET" and c[1] == "/orders/ord-1"]
    assert len(gets) == 2  # initial fetch + refetch after the PUT


def test_remote_failure_raises_and_keeps_cache():
    store = FakeStore([make_order("ord-1", S.PENDING)])
    store.fail_paths.add("/orders/ord-1/status")

    async def run():
        controller = _controller(store)
        with pytest.raises(RemoteError) as exc_info:
            await controller.change_status("ord-1", S.CANCELLED)
        return exc_info.value, controller.cache.get_order("ord-1")

    error, cached = asyncio.run(run())
    assert error.status_code == 500
    assert error.message == "Internal server error"
    assert cached.status == S.PENDING
    assert len(store.status_puts()) == 1


def test_server_rejection_surfaces_its_message():
    store = FakeStore([make_order("ord-1", S.PENDING)])

    async def run():
        controller = _controller(store)
        await controller.get_order("ord-1")
        # someone else moved it on meanwhile
        store.orders["ord-1"] = make_order("ord-1", S.CANCELLED)
        with pytest.raises(RemoteError) as exc_info:
            await controller.change_status("ord-1", S.PROCESSING)
        return exc_info.value

    error = asyncio.run(run())
    assert error.status_code == 400
    assert "Invalid status transition" in error.message


def test_network_failure_is_remote_error():
    store = FakeStore([make_order("ord-1", S.PENDING)])
    store.down = True

    async def run():
        with pytest.raises(RemoteError):
            await _controller(store).get_order("ord-1")

    asyncio.run(run())


def test_missing_order_is_not_found():
    store = FakeStore()

    async def run():
        with pytest.raises(NotFoundError):
            await _controller(store).change_status("ghost", S.PROCESSING)

    asyncio.run(run())
    assert store.status_puts() == []


def test_available_transitions():
    store = FakeStore([make_order("ord-1", S.DELIVERED), make_order("ord-2", S.REFUNDED)])

    async def run():
        controller = _controller(store)
        return (
            await controller.available_transitions("ord-1"),
            await controller.available_transitions("ord-2"),
        )

    delivered, refunded = asyncio.run(run())
    assert delivered == (S.RETURNED, S.REFUNDED)
    assert refunded == ()
