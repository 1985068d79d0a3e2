"""Turns an authenticated request into event parts."""

import json
import logging
from typing import Optional

from gha_webhooks.exceptions import PayloadDecodeError
from gha_webhooks.models import EVENT_HEADER, IncomingRequest

logger = logging.getLogger(__name__)


class PayloadDecoder:
    """Reads the event name header and parses the JSON body."""

    def event_name(self, request: IncomingRequest) -> Optional[str]:
        """Get the event type from the X-GitHub-Event header, if present."""
        return request.header(EVENT_HEADER)

    def decode(self, body: bytes, encoding: Optional[str] = None) -> dict:
        """Parse the body as a JSON object.

        Args:
            body: Raw request body
            encoding: Declared charset of the request, UTF-8 when None

        Returns:
            The decoded JSON object

        Raises:
            PayloadDecodeError: If the body is not a JSON object
        """
        try:
            text = body.decode(encoding or "utf-8")
        except LookupError as e:
            raise PayloadDecodeError(f"Unsupported charset: {encoding}") from e
        except UnicodeDecodeError as e:
            raise PayloadDecodeError("Invalid JSON") from e

        try:
            obj = json.loads(text)
        except (ValueError, RecursionError) as e:
            # ValueError covers JSONDecodeError and over-long integer literals
            raise PayloadDecodeError("Invalid JSON") from e

        if not isinstance(obj, dict):
            raise PayloadDecodeError("Invalid JSON")
        return obj
