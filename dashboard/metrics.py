"""
Prometheus metrics: status changes (accepted/rejected/failed), notifications
received, event source disconnects, stock listing mismatches.
"""
from prometheus_client import Counter, generate_latest

# Order status changes
order_status_changes_total = Counter(
    "order_status_changes_total",
    "Total order status changes confirmed by the order store",
    ["new_status"],
)
order_status_rejected_total = Counter(
    "order_status_rejected_total",
    "Total status changes rejected locally by the transition table",
    ["current_status", "requested_status"],
)
remote_errors_total = Counter(
    "remote_errors_total",
    "Total failed calls to the remote stores",
    ["operation"],
)

# Event channel / inbox
notifications_received_total = Counter(
    "notifications_received_total",
    "Total events received from the event source",
    ["type"],
)
event_channel_disconnects_total = Counter(
    "event_channel_disconnects_total",
    "Total event source disconnects (events sent meanwhile are lost)",
)

# Inventory
stock_listing_mismatches_total = Counter(
    "stock_listing_mismatches_total",
    "Products whose effective stock status disagrees with the server listing they came from",
    ["listing"],
)


def get_metrics_content_type():
    return "text/plain; charset=utf-8; version=0.0.4"


def get_metrics_bytes():
    return generate_latest()
