"""Exception hierarchy for the Codex OAuth login flow.

Every failure that ends a login attempt is an :class:`OAuthLoginError`.
None of them are retried inside the flow; the only recovery is starting a
brand-new login (fresh PKCE, fresh state, fresh port negotiation).

Subclass hierarchy::

    OAuthLoginError (exit 1)
    +-- BindFailure              (exit 3)
    +-- ProviderError            (exit 4)
    +-- StateMismatch            (exit 5)
    +-- MissingCode              (exit 4)
    +-- ExchangeFailure          (exit 6)
    |   +-- TokenResponseParseError
    +-- LoginTimeoutError        (exit 7)
    +-- LoginCancelledError      (exit 8)
    +-- NoPendingLoginError      (exit 2)

Claims that cannot be parsed out of the ID token are deliberately not part
of this hierarchy; they degrade to absent fields.
"""

from typing import Optional


class OAuthLoginError(Exception):
    """Base exception for all login flow failures.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = 1

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class BindFailure(OAuthLoginError):
    """Raised when neither the preferred nor an ephemeral loopback port can be bound."""

    exit_code = 3

    def __init__(self, preferred_port: int, preferred_error: OSError, fallback_error: OSError):
        super().__init__(
            f"Failed to start OAuth server: default port {preferred_port} error: "
            f"{preferred_error}; fallback error: {fallback_error}"
        )
        self.preferred_port = preferred_port
        self.preferred_error = preferred_error
        self.fallback_error = fallback_error


class ProviderError(OAuthLoginError):
    """Raised when the provider redirects back with an ``error`` parameter."""

    exit_code = 4

    def __init__(self, error: str, description: Optional[str] = None):
        super().__init__(f"OAuth error: {error} - {description or 'Unknown error'}")
        self.error = error
        self.description = description


class StateMismatch(OAuthLoginError):
    """Raised when the callback ``state`` is absent or differs from the session's.

    This is an anti-CSRF failure and is never retried automatically.
    """

    exit_code = 5

    def __init__(self, message: str = "OAuth state mismatch"):
        super().__init__(message)


class MissingCode(OAuthLoginError):
    """Raised when the callback carries no authorization code."""

    exit_code = 4

    def __init__(self, message: str = "Missing authorization code"):
        super().__init__(message)


class ExchangeFailure(OAuthLoginError):
    """Raised when the authorization code cannot be exchanged for tokens.

    Attributes:
        status_code: HTTP status returned by the token endpoint, if any.
        body: Raw response body, kept for diagnostics.
    """

    exit_code = 6

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TokenResponseParseError(ExchangeFailure):
    """Raised when the token endpoint answers 2xx with an unusable body."""


class LoginTimeoutError(OAuthLoginError):
    """Raised when no callback arrives before the flow's deadline."""

    exit_code = 7

    def __init__(self, timeout: float):
        super().__init__(f"OAuth login timed out after {timeout:g} seconds")
        self.timeout = timeout


class LoginCancelledError(OAuthLoginError):
    """Raised when the flow is cancelled before a callback arrives."""

    exit_code = 8

    def __init__(self, message: str = "OAuth login cancelled"):
        super().__init__(message)


class NoPendingLoginError(OAuthLoginError):
    """Raised by ``complete_login`` when no login has been started."""

    exit_code = 2

    def __init__(self, message: str = "No pending OAuth login"):
        super().__init__(message)
