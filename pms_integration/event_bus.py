"""
In-process event bus

Topic based publish/subscribe for normalized PMS events. Listeners may be plain
functions or coroutines and may subscribe with fnmatch patterns such as
"pms.booking.*". A failing listener is logged and isolated; emit never raises
to the publisher. Delivery is at-most-once with no ordering across topics.
"""

import inspect
import uuid
from collections import deque
from datetime import datetime, timezone
from fnmatch import fnmatchcase
from typing import Any, Awaitable, Callable, Deque, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .logging_adapter import get_safe_logger
from .metrics import events_emitted_total, listener_errors_total

logger = get_safe_logger("pms.event_bus")


class EventPayload(BaseModel):
    """Payload of a normalized vendor event"""

    model_config = ConfigDict(populate_by_name=True)

    vendor: str
    external_id: str = Field(alias="externalId")
    action: str
    data: Dict[str, Any] = Field(default_factory=dict)


class EventContext(BaseModel):
    """Routing context of a normalized vendor event"""

    model_config = ConfigDict(populate_by_name=True)

    hotel_id: str = Field(alias="hotelId")


class BusEvent(BaseModel):
    """Envelope delivered to listeners"""

    topic: str
    payload: Dict[str, Any]
    context: Dict[str, Any] = Field(default_factory=dict)
    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


Handler = Callable[[BusEvent], Union[None, Awaitable[None]]]
PayloadInput = Union[Mapping[str, Any], BaseModel]


def _as_dict(value: Optional[PayloadInput]) -> Dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    return dict(value)


class EventBus:
    """
    Async publish/subscribe bus.

    Construct one per process and pass it to the components that publish or
    listen; there is no global instance.
    """

    def __init__(self, history_size: int = 100):
        self._subscriptions: List[Tuple[str, Handler]] = []
        self._history: Deque[BusEvent] = deque(maxlen=history_size)

    def subscribe(self, pattern: str, handler: Handler) -> Callable[[], None]:
        """
        Register handler for an exact topic or a wildcard pattern.

        Returns a callable that removes this subscription.
        """
        entry = (pattern, handler)
        self._subscriptions.append(entry)
        logger.debug(
            "event_listener_subscribed",
            pattern=pattern,
            handler=getattr(handler, "__name__", repr(handler)),
        )

        def unsubscribe() -> None:
            if entry in self._subscriptions:
                self._subscriptions.remove(entry)

        return unsubscribe

    def _listeners_for(self, topic: str) -> List[Handler]:
        return [h for pattern, h in self._subscriptions if fnmatchcase(topic, pattern)]

    def listener_count(self, topic: str) -> int:
        """Number of listeners an emit on topic would reach"""
        return len(self._listeners_for(topic))

    async def emit(
        self,
        topic: str,
        payload: Optional[PayloadInput] = None,
        context: Optional[PayloadInput] = None,
    ) -> None:
        event = BusEvent(topic=topic, payload=_as_dict(payload), context=_as_dict(context))
        self._history.append(event)
        events_emitted_total.labels(topic=topic).inc()

        # Snapshot so handlers may unsubscribe while being delivered to
        listeners = self._listeners_for(topic)
        logger.debug(
            "event_emitted",
            topic=topic,
            event_id=event.event_id,
            listeners=len(listeners),
        )

        for handler in listeners:
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                listener_errors_total.labels(topic=topic).inc()
                logger.error(
                    "event_listener_failed",
                    topic=topic,
                    event_id=event.event_id,
                    handler=getattr(handler, "__name__", repr(handler)),
                    error=str(e),
                    exc_info=True,
                )

    def history(self, topic: Optional[str] = None, limit: int = 50) -> List[BusEvent]:
        """Most recent events, newest last, optionally filtered by topic pattern"""
        events = [e for e in self._history if topic is None or fnmatchcase(e.topic, topic)]
        return events[-limit:] if limit else events

    def clear(self) -> None:
        """Drop every subscription and the history"""
        self._subscriptions.clear()
        self._history.clear()
