"""
Signed bearer session tokens.

Token layout: base64url(user_id) "." issued_at "." hex(HMAC-SHA256(secret, "user_id.issued_at"))

Security features:
- HMAC-SHA256 signature verification (constant-time comparison)
- Expiry after max_age_seconds, with 60s tolerance for clock skew
"""

import base64
import binascii
import hashlib
import hmac
import logging
import time

from exceptions.auth import SessionTokenException

logger = logging.getLogger(__name__)

CLOCK_SKEW_SECONDS = 60


def _sign(user_id: str, issued_at: int, secret: str) -> str:
    return hmac.new(
        key=secret.encode('utf-8'),
        msg=f"{user_id}.{issued_at}".encode('utf-8'),
        digestmod=hashlib.sha256
    ).hexdigest()


def issue_session_token(user_id: str, secret: str, issued_at: int | None = None) -> str:
    if not secret:
        raise SessionTokenException("Session secret not configured")
    issued_at = int(time.time()) if issued_at is None else issued_at
    encoded_user_id = base64.urlsafe_b64encode(user_id.encode('utf-8')).decode('ascii').rstrip("=")
    return f"{encoded_user_id}.{issued_at}.{_sign(user_id, issued_at, secret)}"


def validate_session_token(token: str, secret: str, max_age_seconds: int) -> str:
    """
    Validates a session token and returns the user id it was issued for.

    Raises:
        SessionTokenException: If the token is missing, malformed, forged or expired

    Example:
        >>> token = issue_session_token("a1b2", "s" * 32)
        >>> validate_session_token(token, "s" * 32, 3600)
        'a1b2'
    """
    if not token:
        raise SessionTokenException("No token provided")
    if not secret:
        raise SessionTokenException("Session secret not configured")

    parts = token.split(".")
    if len(parts) != 3:
        raise SessionTokenException("Malformed token")
    encoded_user_id, issued_at_str, received_signature = parts

    try:
        padding = "=" * (-len(encoded_user_id) % 4)
        user_id = base64.urlsafe_b64decode(encoded_user_id + padding).decode('utf-8')
        issued_at = int(issued_at_str)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        raise SessionTokenException("Malformed token")
    if not user_id:
        raise SessionTokenException("Malformed token")

    expected_signature = _sign(user_id, issued_at, secret)
    if not hmac.compare_digest(expected_signature, received_signature):
        logger.warning(f"Session token signature mismatch | Received: {received_signature[:16]}...")
        raise SessionTokenException("Invalid signature")

    age_seconds = time.time() - issued_at
    if age_seconds > max_age_seconds:
        raise SessionTokenException(f"Token expired ({int(age_seconds)}s > {max_age_seconds}s max)")
    if age_seconds < -CLOCK_SKEW_SECONDS:
        raise SessionTokenException("Token issued in the future")

    return user_id
