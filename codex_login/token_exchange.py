"""OAuth token exchange for Codex authentication"""

import json
import logging
from typing import Optional

import httpx

from .constants import TOKEN_EXCHANGE_TIMEOUT
from .exceptions import ExchangeFailure, TokenResponseParseError
from .models import PkceCodes, TokenResponse


logger = logging.getLogger(__name__)


def token_endpoint(issuer: str) -> str:
    return f"{issuer.rstrip('/')}/oauth/token"


def _parse_token_payload(response: httpx.Response) -> TokenResponse:
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TokenResponseParseError(
            f"Failed to parse token response: {e}",
            status_code=response.status_code,
            body=response.text,
        ) from e

    if not isinstance(payload, dict):
        raise TokenResponseParseError(
            "Failed to parse token response: expected a JSON object",
            status_code=response.status_code,
            body=response.text,
        )

    missing = [
        name for name in ("id_token", "access_token", "refresh_token")
        if not isinstance(payload.get(name), str)
    ]
    if missing:
        raise TokenResponseParseError(
            f"Failed to parse token response: missing {', '.join(missing)}",
            status_code=response.status_code,
            body=response.text,
        )

    return TokenResponse(
        id_token=payload["id_token"],
        access_token=payload["access_token"],
        refresh_token=payload["refresh_token"],
    )


async def exchange_code_for_tokens(
    issuer: str,
    client_id: str,
    redirect_uri: str,
    pkce: PkceCodes,
    code: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    timeout: float = TOKEN_EXCHANGE_TIMEOUT,
) -> TokenResponse:
    """Exchange authorization code for OAuth tokens

    The redirect URI, client ID and PKCE verifier must be the ones used to
    build the authorization URL of the same flow. The request is sent once;
    any failure is final for the flow.

    Args:
        issuer: Provider base URL
        client_id: OAuth client identifier
        redirect_uri: Redirect URI of this flow
        pkce: PKCE codes of this flow
        code: Authorization code from the OAuth callback
        transport: Optional httpx transport (tests use httpx.MockTransport)
        timeout: Request timeout in seconds

    Returns:
        TokenResponse with ID, access and refresh tokens

    Raises:
        ExchangeFailure: Transport error or non-2xx response
        TokenResponseParseError: 2xx response whose body is not a token payload
    """
    url = token_endpoint(issuer)
    data = {
        "grant_type": "authorization_code",
        "code": code,
        "redirect_uri": redirect_uri,
        "client_id": client_id,
        "code_verifier": pkce.code_verifier,
    }

    logger.info(f"Exchanging authorization code for tokens at {url}")

    try:
        async with httpx.AsyncClient(transport=transport, timeout=timeout) as client:
            response = await client.post(
                url,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
    except httpx.TimeoutException as e:
        logger.error(f"Token exchange timed out after {timeout:g} seconds: {e}")
        raise ExchangeFailure(f"Token exchange timed out: {e}") from e
    except httpx.RequestError as e:
        logger.error(f"Token exchange request failed: {e}")
        raise ExchangeFailure(f"Failed to send token request: {e}") from e

    logger.debug(f"Token exchange response status: {response.status_code}")

    if not response.is_success:
        logger.error(f"Token exchange failed with status {response.status_code}: {response.text}")
        raise ExchangeFailure(
            f"Token exchange failed: {response.status_code} - {response.text}",
            status_code=response.status_code,
            body=response.text,
        )

    tokens = _parse_token_payload(response)
    logger.info("Successfully exchanged authorization code for tokens")
    return tokens
