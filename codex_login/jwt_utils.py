"""
JWT payload decoding and ChatGPT claim extraction

The ID token is decoded WITHOUT signature verification. It is obtained
first-hand from the provider's token endpoint over TLS in the same flow,
so it is trusted for labelling the account only. Any decode failure
degrades to absent claims and never fails the login.
"""
import base64
import binascii
import json
import logging
from typing import Any, Dict, Optional

from .constants import ACCOUNT_ID_CLAIM, AUTH_CLAIM_PATH, PLAN_TYPE_CLAIM
from .models import IdTokenClaims

logger = logging.getLogger(__name__)


def decode_jwt_payload(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode the payload segment of a JWT.

    Args:
        token: Compact JWT (header.payload.signature)

    Returns:
        Decoded payload as dictionary, or None if invalid
    """
    if not token:
        return None

    parts = token.split(".")
    if len(parts) != 3:
        logger.debug(f"Invalid JWT format: expected 3 parts, got {len(parts)}")
        return None

    # JWT uses base64url without padding
    payload = parts[1]
    padded = payload + "=" * (-len(payload) % 4)

    try:
        decoded = base64.urlsafe_b64decode(padded.encode("ascii"))
        data = json.loads(decoded.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        logger.debug(f"Error decoding JWT payload: {e}")
        return None

    if not isinstance(data, dict):
        logger.debug("JWT payload is not a JSON object")
        return None
    return data


def _string_claim(source: Dict[str, Any], name: str) -> Optional[str]:
    value = source.get(name)
    return value if isinstance(value, str) else None


def parse_id_token_claims(id_token: str) -> IdTokenClaims:
    """
    Extract email, plan type and ChatGPT account ID from an ID token.

    The plan type and account ID live in a nested claim object:
    payload[AUTH_CLAIM_PATH][PLAN_TYPE_CLAIM | ACCOUNT_ID_CLAIM]

    Args:
        id_token: OAuth ID token (JWT format)

    Returns:
        IdTokenClaims, with every field None when nothing could be read
    """
    payload = decode_jwt_payload(id_token)
    if payload is None:
        return IdTokenClaims()

    auth_claims = payload.get(AUTH_CLAIM_PATH)
    if not isinstance(auth_claims, dict):
        auth_claims = {}

    return IdTokenClaims(
        email=_string_claim(payload, "email"),
        plan_type=_string_claim(auth_claims, PLAN_TYPE_CLAIM),
        account_id=_string_claim(auth_claims, ACCOUNT_ID_CLAIM),
    )
