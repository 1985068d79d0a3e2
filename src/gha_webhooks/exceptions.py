"""Webhook receiver exception classes."""


class WebhookError(Exception):
    """Base exception for webhook receiver errors."""
    pass


class PayloadDecodeError(WebhookError):
    """Raised when an authenticated request body cannot be decoded."""
    def __init__(self, message: str = "Invalid JSON"):
        super().__init__(message)


class WebhookInternalError(WebhookError):
    """Raised for failures that are not the sender's fault.

    These abort the request with a 500 instead of being mapped to a
    client error.
    """
    pass


class SignatureUnavailableError(WebhookInternalError):
    """Raised when the HMAC primitive cannot be used."""
    def __init__(self, digestmod: str, reason: str = ""):
        self.digestmod = digestmod
        msg = f"HMAC digest unavailable: {digestmod}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class DispatchError(WebhookInternalError):
    """Raised when an authenticated event could not be handed downstream."""
    pass


class DispatchPermissionError(DispatchError):
    """Raised when the dispatcher refuses an event for permission reasons."""
    def __init__(self, event_type: str, reason: str = ""):
        self.event_type = event_type
        msg = f"Not permitted to post event: {event_type}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)
