"""LINE webhook signature verification."""

import base64
import hashlib
import hmac


def compute_signature(channel_secret: str, body: bytes) -> str:
    """Return the base64 HMAC-SHA256 digest LINE sends in X-Line-Signature."""
    digest = hmac.new(channel_secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def is_valid_signature(channel_secret: str, body: bytes, signature: str | None) -> bool:
    """Check a delivery's signature in constant time."""
    if not signature:
        return False
    return hmac.compare_digest(compute_signature(channel_secret, body), signature)
