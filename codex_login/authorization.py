"""OAuth authorization URL construction for Codex"""

from typing import List, Tuple
from urllib.parse import quote

from .constants import ORIGINATOR, SCOPE
from .models import PkceCodes


def authorize_params(
    client_id: str,
    redirect_uri: str,
    pkce: PkceCodes,
    state: str,
) -> List[Tuple[str, str]]:
    """Query parameters of the authorization request, in wire order"""
    return [
        ("response_type", "code"),
        ("client_id", client_id),
        ("redirect_uri", redirect_uri),
        ("scope", SCOPE),
        ("code_challenge", pkce.code_challenge),
        ("code_challenge_method", "S256"),
        # Codex CLI parameters (required for token exchange)
        ("id_token_add_organizations", "true"),
        ("codex_cli_simplified_flow", "true"),
        ("state", state),
        ("originator", ORIGINATOR),
    ]


def build_authorize_url(
    issuer: str,
    client_id: str,
    redirect_uri: str,
    pkce: PkceCodes,
    state: str,
) -> str:
    """Build the OAuth authorization URL

    Pure function of its inputs. Every value is percent-encoded, including
    ``:`` and ``/`` in the redirect URI and spaces in the scope.

    Args:
        issuer: Provider base URL, e.g. https://auth.openai.com
        client_id: OAuth client identifier
        redirect_uri: Loopback redirect URI for this flow
        pkce: PKCE codes for this flow
        state: Anti-CSRF state for this flow

    Returns:
        Full authorization URL
    """
    query = "&".join(
        f"{key}={quote(value, safe='')}"
        for key, value in authorize_params(client_id, redirect_uri, pkce, state)
    )
    return f"{issuer.rstrip('/')}/oauth/authorize?{query}"
