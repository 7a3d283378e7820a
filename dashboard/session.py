"""
DashboardSession owns every long-lived resource of one dashboard session:
the HTTP client, the event source connection, the notification store.
start() on session start, close() on teardown; consumers get it injected.
"""
import logging

import httpx
import redis.asyncio as redis

from dashboard.api_client import InventoryClient, OrderStoreClient, create_http_client
from dashboard.config import Settings, settings as default_settings
from dashboard.event_channel import EventChannel
from dashboard.inventory import InventoryService
from dashboard.notifications import NotificationInbox
from dashboard.order_status import OrderStatusController
from dashboard.storage import FileStorage, KeyValueStore

logger = logging.getLogger(__name__)


class DashboardSession:
    def __init__(
        self,
        http: httpx.AsyncClient,
        event_source: redis.Redis,
        store: KeyValueStore,
        settings: Settings | None = None,
    ):
        settings = settings or default_settings
        self._http = http
        self._event_source = event_source
        self.orders = OrderStatusController(OrderStoreClient(http))
        self.inventory = InventoryService(InventoryClient(http))
        self.inbox = NotificationInbox(store, settings.notification_store_key)
        self.channel = EventChannel(event_source, reconnect_delay_sec=settings.channel_reconnect_delay_sec)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "DashboardSession":
        settings = settings or default_settings
        return cls(
            http=create_http_client(settings),
            event_source=redis.from_url(settings.event_source_url, decode_responses=True),
            store=FileStorage(settings.notification_store_path),
            settings=settings,
        )

    async def start(self) -> None:
        await self.inbox.load()
        await self.channel.start(self.inbox)
        logger.info("Dashboard session started (%d stored notification(s))", len(self.inbox))

    async def close(self) -> None:
        await self.channel.close()
        await self._http.aclose()
        await self._event_source.aclose()
        logger.info("Dashboard session closed")

    async def __aenter__(self) -> "DashboardSession":
        await self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
