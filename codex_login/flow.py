"""Single OAuth login flow running on its own background thread"""

import asyncio
import concurrent.futures
import logging
import socket
import threading
import webbrowser
from typing import Optional

import httpx

from .authorization import build_authorize_url
from .callback_server import OAuthCallbackServer, bind_loopback_socket
from .constants import (
    CLIENT_ID,
    DEFAULT_ISSUER,
    LOGIN_TIMEOUT,
    OAUTH_CALLBACK_PORT,
    POLL_INTERVAL,
    TOKEN_EXCHANGE_TIMEOUT,
    redirect_uri_for_port,
)
from .jwt_utils import parse_id_token_claims
from .models import OAuthLoginInfo, PkceCodes, StoredAccount
from .pkce import generate_pkce, generate_state
from .token_exchange import exchange_code_for_tokens

logger = logging.getLogger(__name__)


def launch_browser(url: str) -> bool:
    """Open the URL in the default browser; failures are logged, never raised"""
    try:
        opened = webbrowser.open(url)
    except (webbrowser.Error, OSError) as e:
        logger.warning(f"Failed to launch browser: {e}")
        return False

    if not opened:
        logger.warning("Could not open browser automatically")
    return opened


class LoginFlow:
    """One login attempt: PKCE, state, redirect URI and the listener serving it

    The PKCE codes, client ID and redirect URI are captured by value when the
    flow starts and are the only ones ever sent to the token endpoint. The
    terminal result is delivered through a one-shot future.
    """

    def __init__(
        self,
        account_name: str,
        *,
        issuer: str,
        client_id: str,
        pkce: PkceCodes,
        state: str,
        redirect_uri: str,
        sock: socket.socket,
        timeout: float = LOGIN_TIMEOUT,
        poll_interval: float = POLL_INTERVAL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        exchange_timeout: float = TOKEN_EXCHANGE_TIMEOUT,
    ):
        self.account_name = account_name
        self.issuer = issuer
        self.client_id = client_id
        self.pkce = pkce
        self.state = state
        self.redirect_uri = redirect_uri
        self.server = OAuthCallbackServer(
            sock,
            state,
            self.redeem_code,
            timeout=timeout,
            poll_interval=poll_interval,
        )
        self.info = OAuthLoginInfo(
            auth_url=build_authorize_url(issuer, client_id, redirect_uri, pkce, state),
            callback_port=self.server.port,
        )
        self._transport = transport
        self._exchange_timeout = exchange_timeout
        self._future: concurrent.futures.Future = concurrent.futures.Future()
        self._thread = threading.Thread(
            target=self._run,
            name=f"oauth-callback-{self.server.port}",
            daemon=True,
        )

    async def redeem_code(self, code: str) -> StoredAccount:
        """Exchange the code and build the account record for this flow"""
        tokens = await exchange_code_for_tokens(
            self.issuer,
            self.client_id,
            self.redirect_uri,
            self.pkce,
            code,
            transport=self._transport,
            timeout=self._exchange_timeout,
        )
        claims = parse_id_token_claims(tokens.id_token)
        if claims.email is None:
            logger.info("ID token carried no usable claims; account will be unlabeled")

        return StoredAccount.new_chatgpt(
            name=self.account_name,
            email=claims.email,
            plan_type=claims.plan_type,
            id_token=tokens.id_token,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            account_id=claims.account_id,
        )

    def _run(self) -> None:
        try:
            account = asyncio.run(self.server.serve())
        except Exception as e:
            self._future.set_exception(e)
        else:
            self._future.set_result(account)

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        """Request cancellation; idempotent and a no-op once the flow is done"""
        if not self._future.done():
            self.server.cancelled.set()

    def done(self) -> bool:
        return self._future.done()

    def wait(self, timeout: Optional[float] = None) -> StoredAccount:
        """
        Block until the flow finishes.

        Args:
            timeout: Seconds to wait, or None to wait for the flow's own deadline

        Returns:
            The account built from the redeemed authorization code

        Raises:
            OAuthLoginError: The flow ended in failure
            concurrent.futures.TimeoutError: ``timeout`` elapsed first
        """
        return self._future.result(timeout)

    def wait_closed(self, timeout: Optional[float] = None) -> bool:
        """Wait for the flow to end (and its port to be released) without raising"""
        done, _ = concurrent.futures.wait([self._future], timeout=timeout)
        return bool(done)


def start_oauth_login(
    account_name: str,
    *,
    issuer: str = DEFAULT_ISSUER,
    client_id: str = CLIENT_ID,
    preferred_port: int = OAUTH_CALLBACK_PORT,
    timeout: float = LOGIN_TIMEOUT,
    poll_interval: float = POLL_INTERVAL,
    open_browser: bool = True,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    exchange_timeout: float = TOKEN_EXCHANGE_TIMEOUT,
) -> LoginFlow:
    """
    Start the OAuth login flow.

    Returns as soon as the callback port is bound and the listener thread is
    running. The browser is opened best-effort; the authorization URL is
    always available on ``flow.info`` for manual use.

    Args:
        account_name: Display name of the account being added
        issuer: Provider base URL
        client_id: OAuth client identifier
        preferred_port: Callback port to try before falling back to an ephemeral one
        timeout: Seconds before the flow gives up waiting for the callback
        poll_interval: Sub-second cadence for checking cancellation and deadline
        open_browser: Whether to launch the default browser
        transport: Optional httpx transport for the token exchange
        exchange_timeout: Token request timeout in seconds

    Returns:
        The running LoginFlow

    Raises:
        BindFailure: No loopback port could be bound (raised before any browser launch)
    """
    pkce = generate_pkce()
    state = generate_state()

    logger.info(f"Starting login for account: {account_name}")
    logger.debug(f"PKCE challenge: {pkce.code_challenge[:20]}...")

    sock = bind_loopback_socket(preferred_port)
    port = sock.getsockname()[1]
    if port != preferred_port:
        logger.warning(
            f"Callback bound to fallback port {port}; the provider may reject "
            f"redirect URIs other than port {preferred_port}"
        )

    redirect_uri = redirect_uri_for_port(port)
    try:
        flow = LoginFlow(
            account_name,
            issuer=issuer,
            client_id=client_id,
            pkce=pkce,
            state=state,
            redirect_uri=redirect_uri,
            sock=sock,
            timeout=timeout,
            poll_interval=poll_interval,
            transport=transport,
            exchange_timeout=exchange_timeout,
        )
        flow.start()
    except Exception:
        sock.close()
        raise

    logger.info(f"Server started on port {port}")
    logger.info(f"Redirect URI: {redirect_uri}")

    if open_browser:
        launch_browser(flow.info.auth_url)

    return flow
