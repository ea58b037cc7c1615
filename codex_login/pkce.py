"""PKCE (Proof Key for Code Exchange) and state generation"""

import base64
import hashlib
import secrets

from .models import PkceCodes

VERIFIER_BYTES = 64
STATE_BYTES = 32


def _b64url_no_pad(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def generate_pkce() -> PkceCodes:
    """Generate PKCE code verifier and challenge

    RFC 7636 PKCE standard:
    - Verifier: 64 random bytes, base64url without padding (86 chars)
    - Challenge: SHA-256 of the verifier's ASCII bytes, base64url without padding

    Returns:
        PkceCodes for a single login flow
    """
    code_verifier = _b64url_no_pad(secrets.token_bytes(VERIFIER_BYTES))
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return PkceCodes(code_verifier=code_verifier, code_challenge=_b64url_no_pad(digest))


def generate_state() -> str:
    """Generate random state parameter for CSRF protection"""
    return _b64url_no_pad(secrets.token_bytes(STATE_BYTES))
