"""Short-lived HMAC signed URLs for proof downloads."""

from __future__ import annotations

import hashlib
import hmac
import math
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlsplit

from paycore.core.errors import ExpiredError, SecurityError, ValidationError
from paycore.core.identifiers import Clock, utcnow

from .models import SignedUrl


class UrlSigner:
    """Signs ``key`` + expiry with HMAC-SHA256.

    URLs look like ``{base_url}?key=...&expires=<unix>&signature=<hex>``.
    """

    def __init__(
        self,
        secret_key: str,
        *,
        base_url: str = "/api/proofs/download",
        ttl_seconds: int = 300,
        clock: Clock = utcnow,
    ) -> None:
        self._secret = secret_key.encode("utf-8")
        self.base_url = base_url
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def signature(self, key: str, expires: int) -> str:
        message = f"{key}\n{expires}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def sign(self, key: str, now: Optional[datetime] = None) -> SignedUrl:
        issued_at = now or self._clock()
        # Whole seconds in the URL; round up so the link never dies early.
        expires = math.ceil((issued_at + timedelta(seconds=self.ttl_seconds)).timestamp())
        expires_at = datetime.fromtimestamp(expires, tz=timezone.utc)
        query = urlencode({"key": key, "expires": expires, "signature": self.signature(key, expires)})
        return SignedUrl(url=f"{self.base_url}?{query}", key=key, expires_at=expires_at)

    def check(self, key: str, expires: int, signature: str, now: Optional[datetime] = None) -> str:
        """Return ``key`` when the signature is genuine and still valid."""
        expected = self.signature(key, expires)
        if not hmac.compare_digest(expected, signature or ""):
            raise SecurityError("Invalid URL signature", code="INVALID_SIGNATURE")
        moment = now or self._clock()
        if moment > datetime.fromtimestamp(expires, tz=timezone.utc):
            raise ExpiredError("Signed URL has expired", code="SIGNED_URL_EXPIRED")
        return key

    def verify(self, url: str, now: Optional[datetime] = None) -> str:
        params = parse_qs(urlsplit(url).query)
        try:
            key = params["key"][0]
            expires = int(params["expires"][0])
            signature = params["signature"][0]
        except (KeyError, IndexError, ValueError):
            raise ValidationError("Malformed signed URL", code="MALFORMED_SIGNED_URL") from None
        return self.check(key, expires, signature, now)


__all__ = ["UrlSigner"]
