"""Pytest configuration for webhook receiver tests."""

import pytest

from gha_webhooks.config import Credentials
from gha_webhooks.dispatch import InMemoryDispatcher
from gha_webhooks.handler import WebhookHandler
from gha_webhooks.models import IncomingRequest
from gha_webhooks.signature import sign_payload


@pytest.fixture
def webhook_secret():
    """Test webhook secret."""
    return "topsecret"


@pytest.fixture
def credentials(webhook_secret):
    return Credentials(webhook_secret)


@pytest.fixture
def dispatcher():
    return InMemoryDispatcher()


@pytest.fixture
def handler(credentials, dispatcher):
    return WebhookHandler(credentials, dispatcher)


@pytest.fixture
def make_request(webhook_secret):
    """Build a signed IncomingRequest; pass signature=None to leave it out."""

    def _make(body=b'{"a":1}', event="push", signature="sign", headers=None, **kwargs):
        all_headers = {"Content-Type": "application/json"}
        if signature == "sign":
            signature = sign_payload(body, webhook_secret)
        if signature is not None:
            all_headers["X-Hub-Signature-256"] = signature
        if event is not None:
            all_headers["X-GitHub-Event"] = event
        all_headers.update(headers or {})
        kwargs.setdefault("content_length", len(body))
        return IncomingRequest(method="POST", headers=all_headers, body=body, **kwargs)

    return _make
