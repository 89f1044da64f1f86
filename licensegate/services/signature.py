"""HMAC signing of activation requests.

A product embedding a license key signs ``key:domain:timestamp`` with the
shared activation secret. The server recomputes the digest and rejects
stale timestamps so a captured request can only be replayed inside the
freshness window.
"""

import hashlib
import hmac
import logging
import time
from typing import Callable, Optional

from licensegate.errors import ExpiredRequestError, InvalidSignatureError

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 300


def signing_payload(key: str, domain: str, timestamp: int) -> bytes:
    return f"{key}:{domain}:{timestamp}".encode()


class SignatureVerifier:
    """Checks request signatures against a secret given at construction."""

    def __init__(
        self,
        secret: Optional[str],
        window_seconds: int = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._secret = secret.encode() if secret else None
        self.window_ms = window_seconds * 1000
        self._clock = clock

    @property
    def configured(self) -> bool:
        return self._secret is not None

    def sign(self, key: str, domain: str, timestamp: int) -> str:
        """Hex HMAC-SHA256 for ``key:domain:timestamp`` (timestamp in epoch ms)."""
        if self._secret is None:
            raise RuntimeError("ACTIVATION_SECRET is not configured")
        return hmac.new(
            self._secret, signing_payload(key, domain, timestamp), hashlib.sha256
        ).hexdigest()

    def verify(self, key: str, domain: str, timestamp: int, signature: str) -> None:
        """Raise unless ``signature`` is fresh and matches.

        Raises:
            ExpiredRequestError: timestamp outside the freshness window
            InvalidSignatureError: digest mismatch, malformed signature or
                no secret configured
        """
        now_ms = int(self._clock() * 1000)
        if abs(now_ms - int(timestamp)) > self.window_ms:
            raise ExpiredRequestError("Request timestamp is outside the allowed window")

        if self._secret is None:
            logger.error("Signed activation received but ACTIVATION_SECRET is not set")
            raise InvalidSignatureError("Signature cannot be verified")

        # lowercase hex only, as produced by sign()
        candidate = (signature or "").strip()
        if candidate != candidate.lower():
            raise InvalidSignatureError("Malformed signature")
        try:
            provided = bytes.fromhex(candidate)
        except ValueError:
            raise InvalidSignatureError("Malformed signature")

        expected = bytes.fromhex(self.sign(key, domain, timestamp))
        if not provided or not hmac.compare_digest(expected, provided):
            raise InvalidSignatureError("Signature mismatch")
