"""
Event channel: one long-lived Redis pub/sub subscription per dashboard session.

Delivery is at-most-once. On disconnect we log and let redis-py reconnect
(it re-subscribes on the new connection); anything published in between is
gone for good, so the inbox is best-effort and not an audit trail.
"""
import asyncio
import json
import logging
from typing import AsyncIterator

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from dashboard.config import settings
from dashboard.errors import ChannelError
from dashboard.metrics import event_channel_disconnects_total, notifications_received_total
from dashboard.notifications import NEW_ORDER, NotificationEvent, NotificationInbox, make_notification

logger = logging.getLogger(__name__)

# Wire channel name -> notification type
SUBSCRIBED_EVENTS: dict[str, str] = {
    "new:order": NEW_ORDER,
}

POLL_TIMEOUT_SEC = 1.0


class EventChannel:
    def __init__(
        self,
        client: redis.Redis,
        events: dict[str, str] | None = None,
        reconnect_delay_sec: float | None = None,
    ):
        self._client = client
        self._events = dict(events or SUBSCRIBED_EVENTS)
        self._reconnect_delay = (
            settings.channel_reconnect_delay_sec if reconnect_delay_sec is None else reconnect_delay_sec
        )
        self._pubsub = None
        self._pump: asyncio.Task | None = None
        self._inflight: asyncio.Future | None = None
        self._closed = False

    @property
    def is_open(self) -> bool:
        return self._pubsub is not None and not self._closed

    async def open(self) -> None:
        if self._closed:
            raise ChannelError("event channel already closed")
        if self._pubsub is not None:
            return
        pubsub = self._client.pubsub(ignore_subscribe_messages=True)
        try:
            await pubsub.subscribe(*self._events)
        except BaseException:
            await pubsub.aclose()
            raise
        self._pubsub = pubsub
        logger.info("Connected to event source, subscribed to %s", ", ".join(self._events))

    def _to_event(self, message: dict) -> NotificationEvent | None:
        if message.get("type") != "message":
            return None
        channel = message.get("channel")
        kind = self._events.get(channel, channel)
        raw = message.get("data")
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            data = {"raw": raw}
        logger.info("%s received: %r", kind, data)
        return make_notification(kind, data)

    async def events(self) -> AsyncIterator[NotificationEvent]:
        """
        Received events, lazily, until close(). Survives disconnects but does
        not fill the gap they leave.
        """
        while not self._closed:
            try:
                await self.open()
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=POLL_TIMEOUT_SEC
                )
            except (RedisConnectionError, RedisTimeoutError, OSError) as e:
                if self._closed:
                    break
                event_channel_disconnects_total.inc()
                logger.warning("Disconnected from event source: %s", e)
                await asyncio.sleep(self._reconnect_delay)
                continue
            if message is None:
                continue
            event = self._to_event(message)
            if event is not None:
                notifications_received_total.labels(type=event.type).inc()
                yield event

    async def _run(self, inbox: NotificationInbox) -> None:
        async for event in self.events():
            if self._closed:
                break
            # a started append always completes; close() waits for it
            self._inflight = asyncio.ensure_future(inbox.append(event))
            try:
                await asyncio.shield(self._inflight)
            except Exception:
                logger.exception("Failed to store %s notification id=%s", event.type, event.id)
            finally:
                if self._inflight.done():
                    self._inflight = None

    async def start(self, inbox: NotificationInbox) -> None:
        """Subscribe and feed every received event into inbox in the background."""
        if self._pump is not None:
            return
        self._pump = asyncio.create_task(self._run(inbox), name="event-channel")

    async def close(self) -> None:
        """Stop delivery, unsubscribe and release the connection. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._pump is not None:
            self._pump.cancel()
            await asyncio.gather(self._pump, return_exceptions=True)
            self._pump = None
        if self._inflight is not None:
            (result,) = await asyncio.gather(self._inflight, return_exceptions=True)
            if isinstance(result, Exception):
                logger.error("Failed to store notification during close: %s", result)
            self._inflight = None
        if self._pubsub is not None:
            try:
                await self._pubsub.unsubscribe()
            except RedisError as e:
                logger.warning("Unsubscribe failed on close: %s", e)
            await self._pubsub.aclose()
            self._pubsub = None
        logger.info("Event channel closed")

    async def __aenter__(self) -> "EventChannel":
        await self.open()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
