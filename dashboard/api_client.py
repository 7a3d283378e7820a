"""
Async REST clients for the remote order and inventory stores.
Every failure surfaces as RemoteError (or NotFoundError on 404); nothing is retried.
"""
import logging
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from dashboard.config import Settings, settings as default_settings
from dashboard.errors import NotFoundError, RemoteError
from dashboard.metrics import remote_errors_total
from dashboard.models import Order, OrdersPage, OrderStatus, StockPage, StockRecord

logger = logging.getLogger(__name__)


def create_http_client(settings: Settings | None = None, **kwargs: Any) -> httpx.AsyncClient:
    settings = settings or default_settings
    headers = {"Content-Type": "application/json"}
    if settings.api_token:
        headers["Authorization"] = f"Bearer {settings.api_token}"
    return httpx.AsyncClient(
        base_url=settings.api_base_url,
        headers=headers,
        timeout=settings.http_timeout_sec,
        **kwargs,
    )


def _error_message(resp: httpx.Response, default: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"{default} (HTTP {resp.status_code})"
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or default
    return default


class _StoreClient:
    def __init__(self, http: httpx.AsyncClient):
        self._http = http

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        *,
        not_found: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            resp = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            remote_errors_total.labels(operation=operation).inc()
            logger.warning("%s %s failed: %s", method, path, e)
            raise RemoteError(f"{operation} failed: {e}") from e

        if resp.status_code == 404 and not_found:
            raise NotFoundError(not_found)
        if resp.is_error:
            remote_errors_total.labels(operation=operation).inc()
            message = _error_message(resp, f"{operation} failed")
            logger.warning("%s %s -> %d: %s", method, path, resp.status_code, message)
            raise RemoteError(message, status_code=resp.status_code)
        return resp

    @staticmethod
    def _parse(operation: str, model, data: Any):
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            remote_errors_total.labels(operation=operation).inc()
            raise RemoteError(f"{operation}: unexpected response body: {e}") from e


class OrderStoreClient(_StoreClient):
    async def get_order(self, order_id: str) -> Order:
        resp = await self._request(
            "get_order", "GET", f"/orders/{order_id}", not_found=f"Order {order_id} not found"
        )
        return self._parse("get_order", Order, resp.json())

    async def list_orders(
        self,
        page: int | None = None,
        limit: int | None = None,
        status: OrderStatus | str | None = None,
        start_date: str | None = None,
        end_date: str | None = None,
        search: str | None = None,
    ) -> OrdersPage:
        params = {
            "page": page,
            "limit": limit,
            "status": OrderStatus(status).value if status else None,
            "startDate": start_date,
            "endDate": end_date,
            "search": search,
        }
        params = {k: v for k, v in params.items() if v}
        resp = await self._request("list_orders", "GET", "/orders", params=params)
        return self._parse("list_orders", OrdersPage, resp.json())

    async def update_status(self, order_id: str, status: OrderStatus | str) -> Order:
        """PUT the new status. The store must reject transitions it does not allow (4xx)."""
        resp = await self._request(
            "update_order_status",
            "PUT",
            f"/orders/{order_id}/status",
            not_found=f"Order {order_id} not found",
            json={"status": OrderStatus(status).value},
        )
        return self._parse("update_order_status", Order, resp.json())


class InventoryClient(_StoreClient):
    async def update_stock(self, product_id: str, quantity: int, reason: str | None = None) -> None:
        body: dict[str, Any] = {"quantity": quantity}
        if reason:
            body["reason"] = reason
        await self._request("update_stock", "PUT", f"/inventory/{product_id}/stock", json=body)

    async def update_threshold(self, product_id: str, threshold: int) -> None:
        await self._request(
            "update_threshold", "PUT", f"/inventory/{product_id}/threshold", json={"threshold": threshold}
        )

    async def _list(self, operation: str, path: str, items_key: str, page: int, limit: int) -> StockPage:
        resp = await self._request(operation, "GET", path, params={"page": page, "limit": limit})
        raw = resp.json()
        if not isinstance(raw, dict):
            raise RemoteError(f"{operation}: unexpected response body")
        # the two listings wrap their rows under different keys
        products = [self._parse(operation, StockRecord, p) for p in raw.get(items_key) or []]
        return StockPage(
            products=products,
            page=raw.get("page", page),
            limit=limit,
            total_pages=raw.get("pages", 0),
            total_items=raw.get("total", 0),
        )

    async def list_low_stock(self, page: int = 1, limit: int = 10) -> StockPage:
        return await self._list("list_low_stock", "/inventory/low-stock", "products", page, limit)

    async def list_out_of_stock(self, page: int = 1, limit: int = 10) -> StockPage:
        return await self._list("list_out_of_stock", "/inventory/out-of-stock", "data", page, limit)
