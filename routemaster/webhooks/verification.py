"""Webhook authentication — HTTP Basic, username carries the shared secret.

Security contract:
- The bus sends the subscription UUID as the Basic-auth username
- The password is ignored
- Comparison uses hmac.compare_digest() (constant-time)
- Missing, non-Basic or undecodable headers never match
"""

from __future__ import annotations

import base64
import binascii
import hmac
import logging

logger = logging.getLogger(__name__)


def basic_auth_username(authorization: str | None) -> str:
    """Extract the username from an ``Authorization: Basic ...`` header.

    Args:
        authorization: Raw header value, or None when absent

    Returns:
        The username, or "" if the header is missing or malformed
    """
    if not authorization:
        return ""
    scheme, _, credentials = authorization.strip().partition(" ")
    if scheme.lower() != "basic" or not credentials:
        return ""
    try:
        decoded = base64.b64decode(credentials.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        logger.debug("Undecodable Basic credentials")
        return ""
    username, sep, _password = decoded.partition(":")
    if not sep:
        return ""
    return username


def verify_basic_auth(authorization: str | None, secret: str) -> bool:
    """Check that the Basic-auth username equals ``secret`` exactly.

    Returns:
        True if the credential matches
    """
    if not secret:
        return False
    username = basic_auth_username(authorization)
    return hmac.compare_digest(username.encode("utf-8"), secret.encode("utf-8"))
