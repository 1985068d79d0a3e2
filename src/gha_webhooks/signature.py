"""HMAC-SHA256 signature verification for GitHub webhooks.

GitHub signs each delivery with the shared secret and sends the result as
``X-Hub-Signature-256: sha256=<hex digest>``. See
https://docs.github.com/en/webhooks/using-webhooks/validating-webhook-deliveries
"""

import hashlib
import hmac
import logging
import re
from typing import Optional, Union

from gha_webhooks.exceptions import SignatureUnavailableError

logger = logging.getLogger(__name__)

HUB_SIGNATURE_256_PREFIX = "sha256="

_HEX_PATTERN = re.compile(r"^[0-9a-fA-F]*$")


def _to_bytes(value: Union[str, bytes], encoding: Optional[str] = None) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode(encoding or "utf-8")


def decode_signature(signature_header: str) -> Optional[bytes]:
    """Extract the digest bytes from a ``sha256=<hex>`` header value.

    Returns:
        The decoded digest, or None if the prefix is missing or the rest
        is not valid hex.
    """
    if not signature_header or not signature_header.startswith(HUB_SIGNATURE_256_PREFIX):
        logger.debug(f"Unsupported webhook signature type: {signature_header!r}")
        return None

    hex_digest = signature_header[len(HUB_SIGNATURE_256_PREFIX):]
    # bytes.fromhex tolerates whitespace, GitHub never sends any
    if len(hex_digest) % 2 or not _HEX_PATTERN.match(hex_digest):
        logger.debug("Invalid signature")
        return None
    return bytes.fromhex(hex_digest)


class SignatureVerifier:
    """Verifies ``X-Hub-Signature-256`` headers against a shared secret."""

    def __init__(self, digestmod: str = "sha256"):
        self.digestmod = digestmod

    def expected_signature(self, payload: bytes, secret: Union[str, bytes]) -> bytes:
        """Compute the HMAC digest of ``payload`` keyed with ``secret``.

        Raises:
            SignatureUnavailableError: If the digest algorithm cannot be used
        """
        try:
            mac = hmac.new(_to_bytes(secret), payload, self.digestmod)
        except ValueError as e:
            raise SignatureUnavailableError(self.digestmod, str(e)) from e
        return mac.digest()

    def verify(
        self,
        signature_header: Optional[str],
        body: Union[str, bytes],
        secret: Union[str, bytes],
        encoding: Optional[str] = None,
    ) -> bool:
        """Check a signature header against the request body.

        Args:
            signature_header: Value of the X-Hub-Signature-256 header
            body: Raw request body; text is encoded with ``encoding``
                (UTF-8 when not given) before hashing
            secret: Shared webhook secret
            encoding: Declared character encoding of the request

        Returns:
            True if the signature matches, False otherwise

        Raises:
            SignatureUnavailableError: If the HMAC primitive is unavailable
        """
        signature = decode_signature(signature_header or "")
        if signature is None:
            return False

        try:
            payload = _to_bytes(body, encoding)
        except LookupError:
            logger.debug(f"Unknown request encoding: {encoding}")
            return False

        return hmac.compare_digest(signature, self.expected_signature(payload, secret))

    def sign(self, body: Union[str, bytes], secret: Union[str, bytes]) -> str:
        """Build the header value a sender would attach to ``body``."""
        digest = self.expected_signature(_to_bytes(body), secret)
        return HUB_SIGNATURE_256_PREFIX + digest.hex()


_default_verifier = SignatureVerifier()


def verify_signature256(
    signature_header: Optional[str],
    body: Union[str, bytes],
    secret: Union[str, bytes],
    encoding: Optional[str] = None,
) -> bool:
    """Verify a GitHub ``sha256=`` signature with the default verifier."""
    return _default_verifier.verify(signature_header, body, secret, encoding)


def sign_payload(body: Union[str, bytes], secret: Union[str, bytes]) -> str:
    """Generate an ``X-Hub-Signature-256`` header value for ``body``."""
    return _default_verifier.sign(body, secret)
