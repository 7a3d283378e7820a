"""
Effective stock status. The stored label on a product can be stale; every
read path classifies from quantity and threshold instead.
"""
from typing import Iterable

from dashboard.models import StockRecord, StockStatus


def classify(quantity: int, threshold: int, stored_status: StockStatus | str) -> StockStatus:
    if quantity <= 0:
        return StockStatus.OUT_OF_STOCK
    if threshold > 0 and quantity <= threshold:
        return StockStatus.LOW_STOCK
    if threshold > 0 and quantity > threshold:
        return StockStatus.IN_STOCK
    # no threshold configured: keep whatever the server last stored
    return StockStatus(stored_status)


def effective_status(record: StockRecord) -> StockStatus:
    return classify(record.quantity, record.low_stock_threshold, record.stored_status)


def is_out_of_stock(record: StockRecord) -> bool:
    return effective_status(record) is StockStatus.OUT_OF_STOCK


def is_low_stock(record: StockRecord) -> bool:
    return effective_status(record) is StockStatus.LOW_STOCK


def filter_by_status(records: Iterable[StockRecord], status: StockStatus) -> list[StockRecord]:
    return [r for r in records if effective_status(r) is status]
