"""
Notification inbox: events pushed by the server, newest first, persisted
wholesale to durable storage on every mutation.

Stored layout under one key: JSON array of {id, type, data, time}.
"""
import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from dashboard.config import settings
from dashboard.errors import ParseError
from dashboard.storage import KeyValueStore

logger = logging.getLogger(__name__)

NEW_ORDER = "new_order"


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> datetime:
    return datetime.now(timezone.utc)


class NewOrderPayload(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    message: str = ""
    order_number: str = Field(alias="orderNumber")


class _Notification(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(default_factory=_new_id)
    received_at: datetime = Field(default_factory=_now, alias="time")


class NewOrderNotification(_Notification):
    type: Literal["new_order"] = NEW_ORDER
    payload: NewOrderPayload = Field(alias="data")


class UnknownNotification(_Notification):
    """Event kind this dashboard does not know (yet). Payload kept as-is."""
    type: str
    payload: Any = Field(default=None, alias="data")


NotificationEvent = Union[NewOrderNotification, UnknownNotification]


def make_notification(kind: str, data: Any, received_at: datetime | None = None) -> NotificationEvent:
    """Wrap a received payload as a typed event stamped with the receive time."""
    raw = {"type": kind, "data": data, "time": received_at or _now()}
    return parse_notification(raw)


def parse_notification(raw: dict) -> NotificationEvent:
    """
    Build the typed event for raw {id?, type, data, time}. Known kinds whose
    payload does not validate fall back to UnknownNotification.
    Raises pydantic ValidationError when the envelope itself is broken.
    """
    if raw.get("type") == NEW_ORDER:
        try:
            return NewOrderNotification.model_validate(raw)
        except PydanticValidationError:
            logger.warning("new_order payload did not validate, keeping it untyped: %r", raw.get("data"))
    return UnknownNotification.model_validate(raw)


def encode_notifications(events: list[NotificationEvent]) -> str:
    return json.dumps([e.model_dump(mode="json", by_alias=True) for e in events])


def decode_notifications(raw: str) -> list[NotificationEvent]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ParseError(f"invalid JSON: {e}") from e
    if not isinstance(data, list):
        raise ParseError(f"expected a list, got {type(data).__name__}")
    events = []
    for item in data:
        if not isinstance(item, dict):
            raise ParseError(f"expected an object, got {type(item).__name__}")
        try:
            events.append(parse_notification(item))
        except PydanticValidationError as e:
            raise ParseError(str(e)) from e
    return events


class NotificationInbox:
    """
    Ordered, durable inbox. One logical owner: mutations are serialized by a
    lock and each one rewrites the whole stored collection before returning.
    """

    def __init__(self, store: KeyValueStore, key: str | None = None):
        self._store = store
        self._key = key or settings.notification_store_key
        self._events: list[NotificationEvent] = []
        self._lock = asyncio.Lock()

    async def load(self) -> None:
        """Read the stored collection. Corrupt data resets the store to empty."""
        raw = await self._store.get(self._key)
        if raw is None:
            self._events = []
            return
        try:
            self._events = decode_notifications(raw)
        except ParseError as e:
            logger.error("Failed to parse notifications from storage, resetting: %s", e)
            await self._store.delete(self._key)
            self._events = []
            return
        logger.info("Loaded %d notification(s) from storage", len(self._events))

    def entries(self) -> list[NotificationEvent]:
        """Snapshot, newest first."""
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    async def _commit(self, events: list[NotificationEvent]) -> None:
        await self._store.set(self._key, encode_notifications(events))
        self._events = events

    async def append(self, event: NotificationEvent) -> None:
        async with self._lock:
            await self._commit([event, *self._events])

    async def remove(self, event_id: str) -> bool:
        """Delete the one entry with event_id. False if there is none."""
        async with self._lock:
            for i, e in enumerate(self._events):
                if e.id == event_id:
                    await self._commit(self._events[:i] + self._events[i + 1:])
                    return True
            return False

    async def clear(self) -> None:
        async with self._lock:
            await self._commit([])
