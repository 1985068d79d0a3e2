"""Webhook request handling: gate, verify, decode, dispatch."""

import logging
from typing import Optional

from gha_webhooks.config import Credentials
from gha_webhooks.decoder import PayloadDecoder
from gha_webhooks.dispatch import EventDispatcher
from gha_webhooks.exceptions import PayloadDecodeError
from gha_webhooks.gate import RequestGate
from gha_webhooks.models import (
    DELIVERY_HEADER,
    SIGNATURE_HEADER,
    IncomingRequest,
    Stage,
    WebhookEvent,
    WebhookResponse,
)
from gha_webhooks.signature import SignatureVerifier

logger = logging.getLogger(__name__)


class WebhookHandler:
    """Authenticates webhook requests and forwards them as events.

    Each request runs once through the stages in order. Validation failures
    end in a response with a 4xx/5xx status. HMAC and dispatch failures are
    raised as WebhookInternalError for the hosting server to turn into a 500.

    Usage:
        handler = WebhookHandler(credentials, dispatcher)
        response = handler.handle(request)
    """

    def __init__(
        self,
        credentials: Credentials,
        dispatcher: EventDispatcher,
        gate: Optional[RequestGate] = None,
        verifier: Optional[SignatureVerifier] = None,
        decoder: Optional[PayloadDecoder] = None,
    ):
        self.credentials = credentials
        self.dispatcher = dispatcher
        self.gate = gate or RequestGate()
        self.verifier = verifier or SignatureVerifier()
        self.decoder = decoder or PayloadDecoder()

        if not self.credentials.is_configured():
            logger.warning("webhook-secret not configured")

    @property
    def max_body_size(self) -> int:
        return self.gate.max_body_size

    def check(self, request: IncomingRequest) -> Optional[WebhookResponse]:
        """Run the gate. Returns a rejection, or None if the body may be read."""
        decision = self.gate.check(request, self.credentials.get_webhook_secret())
        if decision.proceed:
            return None
        return self._reject(Stage.GATING, decision.status_code, decision.reason)

    def handle(self, request: IncomingRequest) -> WebhookResponse:
        """Handle a request whose body has already been received."""
        rejection = self.check(request)
        if rejection is not None:
            return rejection
        if self.gate.is_oversize(len(request.body)):
            return self.oversize()
        return self.process(request)

    def oversize(self) -> WebhookResponse:
        """Rejection for a body that outgrew the cap while being read."""
        logger.debug("request body exceeded size cap while reading")
        return self._reject(Stage.READING, 400, "Oversize request body")

    def process(self, request: IncomingRequest) -> WebhookResponse:
        """Verify, decode and dispatch a gated request with its body read.

        Raises:
            SignatureUnavailableError: If HMAC cannot be computed
            DispatchError: If the dispatcher fails or refuses the event
        """
        secret = self.credentials.get_webhook_secret()
        if not secret:
            # Secret cleared between gating and verification
            logger.warning("webhook-secret not configured")
            return self._reject(Stage.VERIFYING, 500, "Misconfigured GitHub webhook server")

        if not self.verifier.verify(
            request.header(SIGNATURE_HEADER), request.body, secret, request.encoding
        ):
            logger.debug("Invalid webhook signature")
            return self._reject(Stage.VERIFYING, 401, "Invalid GitHub request signature")

        event_name = self.decoder.event_name(request)
        if event_name is None:
            logger.warning("Received webhook without x-github-event header (authenticated)")
            return self._reject(Stage.DECODING, 400, "Missing event name header")

        try:
            payload = self.decoder.decode(request.body, request.encoding)
        except PayloadDecodeError as e:
            logger.warning(f"Received invalid JSON (authenticated): {e}")
            return self._reject(Stage.DECODING, 400, str(e))

        delivery_id = request.header(DELIVERY_HEADER)
        logger.debug(
            f"Received webhook ({event_name})",
            extra={"event_type": event_name, "delivery_id": delivery_id},
        )

        event = WebhookEvent(event_type=event_name, payload=payload, delivery_id=delivery_id)
        self.dispatcher.post_event(event)
        return WebhookResponse(status_code=200, event=event, stage=Stage.DONE)

    def _reject(self, stage: Stage, status_code: int, reason: str) -> WebhookResponse:
        return WebhookResponse(status_code=status_code, detail=reason, stage=stage)
