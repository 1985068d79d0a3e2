"""Data models for the webhook receiver."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Mapping, Optional

SIGNATURE_HEADER = "x-hub-signature-256"
EVENT_HEADER = "x-github-event"
DELIVERY_HEADER = "x-github-delivery"


class Stage(Enum):
    """Where a request is in the handling pipeline."""

    GATING = auto()
    READING = auto()
    VERIFYING = auto()
    DECODING = auto()
    DISPATCHING = auto()
    DONE = auto()


@dataclass(frozen=True)
class IncomingRequest:
    """A webhook request as seen by the handler.

    ``headers`` keys are lower-cased on construction so lookups are
    case-insensitive. ``content_length`` is ``None`` when the client did
    not declare one.
    """

    method: str
    headers: Mapping[str, str]
    body: bytes = b""
    content_length: Optional[int] = None
    encoding: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "headers", {k.lower(): v for k, v in self.headers.items()}
        )

    def header(self, name: str) -> Optional[str]:
        """Get a header value by case-insensitive name."""
        return self.headers.get(name.lower())

    def with_body(self, body: bytes) -> "IncomingRequest":
        """Return a copy of this request carrying ``body``."""
        return IncomingRequest(
            method=self.method,
            headers=self.headers,
            body=body,
            content_length=self.content_length,
            encoding=self.encoding,
        )


@dataclass(frozen=True)
class WebhookEvent:
    """An authenticated event, ready for dispatch."""

    event_type: str
    payload: dict
    delivery_id: Optional[str] = None
    received_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "event_type": self.event_type,
            "payload": self.payload,
            "delivery_id": self.delivery_id,
            "received_at": self.received_at,
        }


@dataclass(frozen=True)
class WebhookResponse:
    """Outcome of handling one request."""

    status_code: int
    detail: Optional[str] = None
    event: Optional[WebhookEvent] = None
    stage: Stage = Stage.DONE

    @property
    def ok(self) -> bool:
        return self.status_code < 400
