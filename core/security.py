import hashlib
import hmac


def sign_body(body: bytes, secret: str) -> str:
    """
    Sign a request body with HMAC-SHA256.

    Args:
        body: Exact bytes that go on the wire
        secret: Shared signing secret

    Returns:
        Hex-encoded signature
    """
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def verify_body_signature(body: bytes, secret: str, signature: str | None) -> bool:
    """Verify a hex HMAC-SHA256 signature in constant time."""
    return hmac.compare_digest(sign_body(body, secret), signature or "")
