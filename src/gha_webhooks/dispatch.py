"""Event dispatchers receiving authenticated webhook events."""

import json
import logging
import threading
from typing import Optional, Protocol, runtime_checkable

import redis

from gha_webhooks.exceptions import DispatchError, DispatchPermissionError
from gha_webhooks.models import WebhookEvent

logger = logging.getLogger(__name__)


@runtime_checkable
class EventDispatcher(Protocol):
    """Anything that accepts a validated event.

    Implementations raise DispatchPermissionError when the event is refused
    and DispatchError for any other failure.
    """

    def post_event(self, event: WebhookEvent) -> None:
        ...


class DynamicDispatcher:
    """Swappable reference to the active dispatcher.

    The most recently registered dispatcher receives events. The reference
    is resolved on every ``post_event`` call, so swapping takes effect for
    the next request.
    """

    def __init__(self, dispatcher: Optional[EventDispatcher] = None):
        self._lock = threading.Lock()
        self._dispatcher = dispatcher

    def register(self, dispatcher: EventDispatcher) -> None:
        with self._lock:
            self._dispatcher = dispatcher
        logger.info(f"Registered event dispatcher: {type(dispatcher).__name__}")

    def get(self) -> Optional[EventDispatcher]:
        with self._lock:
            return self._dispatcher

    def post_event(self, event: WebhookEvent) -> None:
        dispatcher = self.get()
        if dispatcher is None:
            raise DispatchError("No event dispatcher registered")
        dispatcher.post_event(event)


class InMemoryDispatcher:
    """Keeps dispatched events in a list."""

    def __init__(self):
        self.events: list[WebhookEvent] = []

    def post_event(self, event: WebhookEvent) -> None:
        self.events.append(event)
        logger.debug(f"Collected event {event.event_type}")


class RedisStreamDispatcher:
    """Publishes events to a Redis stream."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        stream_name: str = "gerrit-events",
        max_length: int = 10000,
        client: Optional[redis.Redis] = None,
    ):
        """Initialize RedisStreamDispatcher.

        Args:
            redis_url: Redis connection URL
            stream_name: Name of the stream to publish to
            max_length: Maximum stream length for automatic trimming
            client: Existing Redis client, used instead of ``redis_url``
        """
        self.redis_url = redis_url
        self.stream_name = stream_name
        self.max_length = max_length
        self._client = client

    @property
    def client(self) -> redis.Redis:
        """Get or create Redis client."""
        if self._client is None:
            self._client = redis.from_url(self.redis_url, decode_responses=True)
        return self._client

    def post_event(self, event: WebhookEvent) -> None:
        """Append the event to the stream.

        Raises:
            DispatchPermissionError: If Redis ACLs forbid writing the stream
            DispatchError: For any other Redis failure
        """
        data = event.to_dict()
        message = {
            "event_type": data["event_type"],
            "payload": json.dumps(data["payload"]),
            "delivery_id": data["delivery_id"] or "",
            "timestamp": data["received_at"],
        }
        try:
            message_id = self.client.xadd(
                self.stream_name,
                message,
                maxlen=self.max_length,
                approximate=True,
            )
        except redis.exceptions.NoPermissionError as e:
            raise DispatchPermissionError(event.event_type, str(e)) from e
        except redis.RedisError as e:
            raise DispatchError(f"Failed to publish event: {e}") from e
        logger.debug(f"Published event {event.event_type} with ID {message_id}")

    def close(self):
        """Close connection."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
