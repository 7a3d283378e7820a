"""
Inventory read/write paths. Listings are re-classified on read; the stock
settings flow is two independent PUTs and is not transactional.
"""
import logging
from dataclasses import dataclass

from dashboard.api_client import InventoryClient
from dashboard.errors import RemoteError
from dashboard.metrics import stock_listing_mismatches_total
from dashboard.models import StockPage, StockStatus
from dashboard.stock import effective_status

logger = logging.getLogger(__name__)


@dataclass
class StepOutcome:
    step: str
    ok: bool
    error: str | None = None


class InventoryService:
    def __init__(self, client: InventoryClient):
        self._client = client

    def _check_listing(self, listing: str, page: StockPage, expected: StockStatus) -> StockPage:
        for record in page.products:
            actual = effective_status(record)
            if actual is not expected:
                stock_listing_mismatches_total.labels(listing=listing).inc()
                logger.warning(
                    "Product %s listed as %s by the server but classifies as %s (qty=%d threshold=%d)",
                    record.product_id, expected.value, actual.value,
                    record.quantity, record.low_stock_threshold,
                )
        return page

    async def low_stock(self, page: int = 1, limit: int = 10) -> StockPage:
        result = await self._client.list_low_stock(page, limit)
        return self._check_listing("low-stock", result, StockStatus.LOW_STOCK)

    async def out_of_stock(self, page: int = 1, limit: int = 10) -> StockPage:
        result = await self._client.list_out_of_stock(page, limit)
        return self._check_listing("out-of-stock", result, StockStatus.OUT_OF_STOCK)

    async def apply_stock_settings(
        self,
        product_id: str,
        quantity: int | None = None,
        threshold: int | None = None,
        reason: str | None = None,
    ) -> list[StepOutcome]:
        """
        Set quantity then threshold. Each step is reported on its own; a failed
        threshold update leaves the new quantity in place.
        """
        outcomes = []
        if quantity is not None:
            outcomes.append(await self._step("stock", self._client.update_stock(product_id, quantity, reason)))
        if threshold is not None:
            outcomes.append(await self._step("threshold", self._client.update_threshold(product_id, threshold)))
        return outcomes

    @staticmethod
    async def _step(name: str, call) -> StepOutcome:
        try:
            await call
        except RemoteError as e:
            logger.warning("Stock settings step %s failed: %s", name, e)
            return StepOutcome(step=name, ok=False, error=e.message)
        return StepOutcome(step=name, ok=True)
