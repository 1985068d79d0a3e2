"""GitHub Actions webhook receiver.

Authenticates GitHub webhook deliveries (HMAC-SHA256 over the raw body)
and forwards them as typed events to the host's event stream.
"""

from gha_webhooks.config import Credentials, WebhookSettings, load_settings
from gha_webhooks.dispatch import (
    DynamicDispatcher,
    EventDispatcher,
    InMemoryDispatcher,
    RedisStreamDispatcher,
)
from gha_webhooks.exceptions import (
    DispatchError,
    DispatchPermissionError,
    PayloadDecodeError,
    SignatureUnavailableError,
    WebhookError,
    WebhookInternalError,
)
from gha_webhooks.handler import WebhookHandler
from gha_webhooks.models import IncomingRequest, Stage, WebhookEvent, WebhookResponse
from gha_webhooks.server import create_app
from gha_webhooks.signature import SignatureVerifier, sign_payload, verify_signature256

__version__ = "0.1.0"

__all__ = [
    "Credentials",
    "WebhookSettings",
    "load_settings",
    "DynamicDispatcher",
    "EventDispatcher",
    "InMemoryDispatcher",
    "RedisStreamDispatcher",
    "DispatchError",
    "DispatchPermissionError",
    "PayloadDecodeError",
    "SignatureUnavailableError",
    "WebhookError",
    "WebhookInternalError",
    "WebhookHandler",
    "IncomingRequest",
    "Stage",
    "WebhookEvent",
    "WebhookResponse",
    "create_app",
    "SignatureVerifier",
    "sign_payload",
    "verify_signature256",
]
