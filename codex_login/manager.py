"""OAuth login orchestration with a single pending-flow slot"""

import logging
import threading
from typing import Optional, Protocol

import httpx

from .constants import (
    CLIENT_ID,
    DEFAULT_ISSUER,
    LOGIN_TIMEOUT,
    OAUTH_CALLBACK_PORT,
    POLL_INTERVAL,
    TOKEN_EXCHANGE_TIMEOUT,
)
from .exceptions import NoPendingLoginError
from .flow import LoginFlow, start_oauth_login
from .models import OAuthLoginInfo, StoredAccount

logger = logging.getLogger(__name__)

# How long start_login waits for a superseded flow to release its port
SUPERSEDE_WAIT = 5.0


class AccountStore(Protocol):
    """Account storage collaborator the finished login is handed to"""

    def add_account(self, account: StoredAccount) -> StoredAccount: ...

    def find_account(self, account_id: str) -> Optional[StoredAccount]: ...

    def set_active_account(self, account_id: str) -> None: ...

    def touch_account(self, account_id: str) -> None: ...

    def get_active_account_id(self) -> Optional[str]: ...


class OAuthLoginManager:
    """Owns the one pending OAuth login of the process

    Create one instance at the composition root. Starting a login cancels
    any pending one first so its callback port is released before the new
    flow binds.
    """

    def __init__(
        self,
        store: Optional[AccountStore] = None,
        *,
        issuer: str = DEFAULT_ISSUER,
        client_id: str = CLIENT_ID,
        preferred_port: int = OAUTH_CALLBACK_PORT,
        timeout: float = LOGIN_TIMEOUT,
        poll_interval: float = POLL_INTERVAL,
        open_browser: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        exchange_timeout: float = TOKEN_EXCHANGE_TIMEOUT,
        supersede_wait: float = SUPERSEDE_WAIT,
    ):
        """
        Args:
            store: Optional account store; when set, completed logins are added,
                made active and touched before being returned
            issuer: Provider base URL
            client_id: OAuth client identifier
            preferred_port: Callback port tried first by every flow
            timeout: Per-flow callback deadline in seconds
            poll_interval: Sub-second cadence of the listener's checks
            open_browser: Whether flows launch the default browser
            transport: Optional httpx transport for token exchanges
            exchange_timeout: Token request timeout in seconds
            supersede_wait: Seconds to wait for a cancelled flow to close
        """
        self.store = store
        self.issuer = issuer
        self.client_id = client_id
        self.preferred_port = preferred_port
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.open_browser = open_browser
        self.transport = transport
        self.exchange_timeout = exchange_timeout
        self.supersede_wait = supersede_wait

        self._lock = threading.Lock()
        self._pending: Optional[LoginFlow] = None

    @property
    def pending_flow(self) -> Optional[LoginFlow]:
        """The flow currently awaiting its callback, if any"""
        with self._lock:
            return self._pending

    def start_login(self, account_name: str) -> OAuthLoginInfo:
        """
        Start a new login, superseding any pending one.

        Args:
            account_name: Display name for the account being added

        Returns:
            OAuthLoginInfo with the authorization URL and callback port

        Raises:
            BindFailure: No loopback port could be bound
        """
        with self._lock:
            previous, self._pending = self._pending, None
            if previous is not None:
                logger.info("Cancelling previous pending login")
                previous.cancel()
                if not previous.wait_closed(self.supersede_wait):
                    logger.warning("Previous login did not release its port in time")

            flow = start_oauth_login(
                account_name,
                issuer=self.issuer,
                client_id=self.client_id,
                preferred_port=self.preferred_port,
                timeout=self.timeout,
                poll_interval=self.poll_interval,
                open_browser=self.open_browser,
                transport=self.transport,
                exchange_timeout=self.exchange_timeout,
            )
            self._pending = flow

        return flow.info

    def complete_login(self, timeout: Optional[float] = None) -> StoredAccount:
        """
        Wait for the pending login to finish.

        The slot lock is not held while waiting, so ``cancel_login`` can still
        end the flow from another thread.

        Args:
            timeout: Seconds to wait, or None to wait for the flow's own deadline

        Returns:
            The new account (as returned by the store, when one is configured)

        Raises:
            NoPendingLoginError: No login has been started
            OAuthLoginError: The flow ended in failure
        """
        flow = self.pending_flow
        if flow is None:
            raise NoPendingLoginError()

        try:
            account = flow.wait(timeout)
        finally:
            with self._lock:
                if self._pending is flow and flow.done():
                    self._pending = None

        logger.info(f"Login completed for account: {account.name}")
        if self.store is None:
            return account
        return self._hand_off(account)

    def cancel_login(self) -> None:
        """Cancel the pending login, if any; always succeeds"""
        with self._lock:
            pending, self._pending = self._pending, None
        if pending is not None:
            logger.info("Cancelling pending login")
            pending.cancel()

    def _hand_off(self, account: StoredAccount) -> StoredAccount:
        stored = self.store.add_account(account)
        self.store.set_active_account(stored.id)
        self.store.touch_account(stored.id)
        return self.store.find_account(stored.id) or stored
