"""Webhook signature verification - HMAC-SHA1 over the raw request body.

GitHub sends X-Hub-Signature: sha1=<hex digest>. The digest must be computed
on the bytes exactly as received; re-serialized JSON is not byte-identical.
"""
import hashlib
import hmac

SIGNATURE_PREFIX = "sha1="


def sign_request_body(secret: str, body: bytes) -> str:
    """Return the X-Hub-Signature value GitHub would send for body."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha1).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(secret: str, raw_body: bytes, provided_signature: str | None) -> bool:
    """True if provided_signature matches the body. Empty secret always fails."""
    if not secret or not provided_signature:
        return False
    expected = sign_request_body(secret, raw_body)
    return hmac.compare_digest(expected.encode("utf-8"), provided_signature.encode("utf-8"))
