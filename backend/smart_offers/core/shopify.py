import base64
import hashlib
import hmac


def verify_webhook_hmac(request_body: bytes, hmac_header: str, secret: str) -> bool:
    """Check a Shopify webhook signature.

    ``hmac_header`` is the X-Shopify-Hmac-Sha256 value: Base64 of the
    HMAC-SHA256 of the raw body keyed with the app secret. An empty header
    or an unconfigured secret never verifies.
    """
    if not hmac_header or not secret:
        return False
    computed = base64.b64encode(
        hmac.new(secret.encode("utf-8"), request_body, hashlib.sha256).digest()
    ).decode("utf-8")
    try:
        return hmac.compare_digest(computed, hmac_header)
    except TypeError:
        # Non-ASCII header values
        return False
