"""
Local OAuth callback server

Binds a loopback socket (preferred port first, then an ephemeral one) and
serves it with a single-route aiohttp application until exactly one
callback request has been handled, the deadline passes, or the flow is
cancelled.
"""
import asyncio
import html
import logging
import os
import secrets
import socket
import threading
import time
from typing import Awaitable, Callable, Optional, Tuple

from aiohttp import web

from .constants import LOGIN_TIMEOUT, LOOPBACK_HOST, OAUTH_CALLBACK_PATH, POLL_INTERVAL
from .exceptions import (
    BindFailure,
    LoginCancelledError,
    LoginTimeoutError,
    MissingCode,
    OAuthLoginError,
    ProviderError,
    StateMismatch,
)
from .models import StoredAccount

logger = logging.getLogger(__name__)

# Redeems an authorization code for the account record of this flow
CodeRedeemer = Callable[[str], Awaitable[StoredAccount]]

LISTEN_BACKLOG = 16
SHUTDOWN_TIMEOUT = 2.0


LOGIN_SUCCESS_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <title>Login Successful</title>
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; display: flex; justify-content: center; align-items: center; height: 100vh; margin: 0; background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); }
        .container { text-align: center; background: white; padding: 40px 60px; border-radius: 16px; box-shadow: 0 20px 60px rgba(0,0,0,0.3); }
        h1 { color: #333; margin-bottom: 10px; }
        p { color: #666; }
        .checkmark { font-size: 48px; margin-bottom: 20px; }
    </style>
</head>
<body>
    <div class="container">
        <div class="checkmark">&#10003;</div>
        <h1>Login Successful!</h1>
        <p>You can close this window and return to the application.</p>
    </div>
</body>
</html>
"""

LOGIN_FAILED_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <title>{title}</title>
</head>
<body>
    <div style="max-width: 640px; margin: 80px auto; font-family: system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial, sans-serif;">
        <h1>{title}</h1>
        <p>{message}</p>
        <p>You can close this window and start a new login from the application.</p>
    </div>
</body>
</html>
"""


def _bind(host: str, port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        # Lets a finished flow's port be bound again while old connections sit in TIME_WAIT.
        # Not on Windows, where SO_REUSEADDR allows stealing a listening port.
        if os.name == "posix":
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(LISTEN_BACKLOG)
    except OSError:
        sock.close()
        raise
    return sock


def bind_loopback_socket(preferred_port: int, host: str = LOOPBACK_HOST) -> socket.socket:
    """
    Bind a listening socket on the loopback interface.

    Tries the preferred port first and falls back to an OS-assigned
    ephemeral port if it is busy or not permitted.

    Args:
        preferred_port: Port registered with the provider (1455 for Codex)
        host: Loopback address to bind

    Returns:
        Listening socket

    Raises:
        BindFailure: If both binds fail
        ValueError: If preferred_port is not a TCP port number
    """
    if not 0 <= preferred_port <= 65535:
        raise ValueError(f"preferred_port must be between 0 and 65535, got {preferred_port}")

    try:
        return _bind(host, preferred_port)
    except OSError as preferred_error:
        logger.warning(
            f"Default callback port {preferred_port} unavailable ({preferred_error}), "
            f"using a random local port"
        )
        try:
            return _bind(host, 0)
        except OSError as fallback_error:
            raise BindFailure(preferred_port, preferred_error, fallback_error) from fallback_error


def _state_matches(received: Optional[str], expected: str) -> bool:
    if received is None:
        return False
    return secrets.compare_digest(received.encode("utf-8"), expected.encode("utf-8"))


def _failure_page(status: int, title: str, message: str) -> web.Response:
    return web.Response(
        text=LOGIN_FAILED_HTML.format(title=html.escape(title), message=html.escape(message)),
        content_type="text/html",
        charset="utf-8",
        status=status,
    )


class OAuthCallbackServer:
    """Single-use loopback HTTP server for the OAuth redirect

    Lifecycle: listening -> (timeout | cancelled | callback received) -> closed.
    Requests to other paths get a 404 and leave the server listening. A GET
    on the callback path always ends the flow, whether it validates or not.
    """

    def __init__(
        self,
        sock: socket.socket,
        expected_state: str,
        redeem_code: CodeRedeemer,
        *,
        timeout: float = LOGIN_TIMEOUT,
        poll_interval: float = POLL_INTERVAL,
        cancelled: Optional[threading.Event] = None,
    ):
        if not 0 < poll_interval < 1:
            raise ValueError(f"poll_interval must be sub-second, got {poll_interval}")

        self.sock = sock
        self.port: int = sock.getsockname()[1]
        self.expected_state = expected_state
        self.redeem_code = redeem_code
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.cancelled = cancelled or threading.Event()
        self.created_at = time.monotonic()

        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self._event: Optional[asyncio.Event] = None
        self._lock: Optional[asyncio.Lock] = None
        self._in_flight = False
        self._account: Optional[StoredAccount] = None
        self._error: Optional[OAuthLoginError] = None

        # Register callback route; everything else falls through to 404
        self.app.router.add_get(OAUTH_CALLBACK_PATH, self._handle_callback)

    async def _handle_callback(self, request: web.Request) -> web.Response:
        """Handle OAuth callback request"""
        async with self._lock:
            if self._event.is_set():
                return web.Response(text="Login flow already completed", status=409)

            self._in_flight = True
            try:
                response, account, error = await self._validate_and_redeem(request)
            except Exception as e:
                logger.exception("Error in callback handler")
                response = web.Response(text=f"Internal error: {e}", status=500)
                account = None
                error = OAuthLoginError(f"OAuth callback failed: {e}")
            finally:
                self._in_flight = False

            self._account = account
            self._error = error
            self._event.set()
            return response

    async def _validate_and_redeem(
        self, request: web.Request
    ) -> Tuple[web.Response, Optional[StoredAccount], Optional[OAuthLoginError]]:
        params = request.query
        logger.info("Received callback request")
        logger.debug(f"Callback params: {sorted(params.keys())}")

        # Provider-reported error wins over everything else, even when blank
        error = params.get("error")
        if error is not None:
            description = params.get("error_description")
            logger.error(f"Error from provider: {error} - {description or 'Unknown error'}")
            return (
                _failure_page(400, "Authentication Failed", f"OAuth Error: {error} - {description or 'Unknown error'}"),
                None,
                ProviderError(error, description),
            )

        # Validate state (CSRF protection)
        if not _state_matches(params.get("state"), self.expected_state):
            logger.error("State mismatch on OAuth callback")
            return _failure_page(400, "Authentication Failed", "State mismatch"), None, StateMismatch()

        logger.debug("State verified OK")

        code = params.get("code")
        if not code:
            logger.error("Missing authorization code")
            return _failure_page(400, "Authentication Failed", "Missing authorization code"), None, MissingCode()

        logger.info("Got authorization code, exchanging for tokens...")
        try:
            account = await self.redeem_code(code)
        except OAuthLoginError as e:
            logger.error(f"Token exchange failed: {e}")
            return web.Response(text=f"Token exchange failed: {e}", status=500), None, e

        return (
            web.Response(text=LOGIN_SUCCESS_HTML, content_type="text/html", charset="utf-8"),
            account,
            None,
        )

    async def start(self) -> None:
        """Start serving the bound socket"""
        self._event = asyncio.Event()
        self._lock = asyncio.Lock()

        self.runner = web.AppRunner(self.app, shutdown_timeout=SHUTDOWN_TIMEOUT)
        await self.runner.setup()

        site = web.SockSite(self.runner, self.sock)
        await site.start()
        logger.info(f"OAuth callback server listening on port {self.port}")

    async def wait_for_result(self) -> StoredAccount:
        """
        Wait for the callback to produce a terminal result.

        Polls with a bounded wait so the cancellation flag and the deadline
        are re-checked at least every ``poll_interval`` seconds. Neither is
        checked while a callback is being processed; that request decides
        the outcome.

        Returns:
            The account built from the redeemed code

        Raises:
            LoginTimeoutError: No callback before the deadline
            LoginCancelledError: Cancellation flag set before a callback
            OAuthLoginError: The callback failed validation or exchange
        """
        deadline = self.created_at + self.timeout

        while not self._event.is_set():
            if not self._in_flight:
                if self.cancelled.is_set():
                    logger.info("OAuth login cancelled")
                    raise LoginCancelledError()
                if time.monotonic() >= deadline:
                    logger.warning(f"OAuth callback timeout after {self.timeout:g} seconds")
                    raise LoginTimeoutError(self.timeout)

            wait = self.poll_interval
            if not self._in_flight:
                wait = max(0.0, min(wait, deadline - time.monotonic()))
            try:
                await asyncio.wait_for(self._event.wait(), timeout=wait)
            except asyncio.TimeoutError:
                continue

        if self._error is not None:
            raise self._error
        return self._account

    async def stop(self) -> None:
        """Stop the callback server and release the port"""
        try:
            if self.runner:
                await self.runner.cleanup()
        finally:
            self.sock.close()
        logger.debug(f"OAuth callback server on port {self.port} closed")

    async def serve(self) -> StoredAccount:
        """Run the server until it produces a terminal result, then close it"""
        try:
            await self.start()
            return await self.wait_for_result()
        finally:
            await self.stop()
