"""Cheap request checks run before the body is read."""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from gha_webhooks.models import SIGNATURE_HEADER, IncomingRequest

logger = logging.getLogger(__name__)

# Limit max request body size to prevent spam
MAX_REQUEST_BODY_SIZE = 131072


@dataclass(frozen=True)
class GateDecision:
    """Result of gating a request: proceed, or reject with a status."""

    status_code: Optional[int] = None
    reason: Optional[str] = None

    @property
    def proceed(self) -> bool:
        return self.status_code is None

    @classmethod
    def accept(cls) -> "GateDecision":
        return cls()

    @classmethod
    def reject(cls, status_code: int, reason: str) -> "GateDecision":
        return cls(status_code=status_code, reason=reason)


class RequestGate:
    """Rejects requests that are not worth reading.

    Checks run in order and the first failure wins: secret configured,
    signature header present, declared body size within the cap.
    """

    def __init__(self, max_body_size: int = MAX_REQUEST_BODY_SIZE):
        self.max_body_size = max_body_size

    def check(
        self,
        request: IncomingRequest,
        secret: Optional[Union[str, bytes]],
    ) -> GateDecision:
        if not secret:
            logger.warning("webhook-secret not configured")
            return GateDecision.reject(500, "Misconfigured GitHub webhook server")

        if not request.header(SIGNATURE_HEADER):
            logger.debug("request missing signature header")
            return GateDecision.reject(401, "Missing GitHub request signature")

        if self.is_oversize(request.content_length):
            logger.debug(
                f"request body too large: {request.content_length} > {self.max_body_size}"
            )
            return GateDecision.reject(400, "Oversize request body")

        return GateDecision.accept()

    def is_oversize(self, size: Optional[int]) -> bool:
        """True if ``size`` exceeds the cap. Unknown sizes are not oversize."""
        return size is not None and size > self.max_body_size
