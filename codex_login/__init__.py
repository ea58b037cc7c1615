"""
Codex OAuth loopback login module
"""
from .constants import (
    CLIENT_ID,
    DEFAULT_ISSUER,
    SCOPE,
    AUTH_CLAIM_PATH,
    OAUTH_CALLBACK_PORT,
    OAUTH_CALLBACK_PATH,
    LOGIN_TIMEOUT,
    POLL_INTERVAL,
    redirect_uri_for_port,
)
from .exceptions import (
    OAuthLoginError,
    BindFailure,
    ProviderError,
    StateMismatch,
    MissingCode,
    ExchangeFailure,
    TokenResponseParseError,
    LoginTimeoutError,
    LoginCancelledError,
    NoPendingLoginError,
)
from .models import (
    PkceCodes,
    OAuthLoginInfo,
    TokenResponse,
    IdTokenClaims,
    AuthMode,
    ChatGPTAuthData,
    StoredAccount,
    AccountInfo,
)
from .pkce import generate_pkce, generate_state
from .authorization import build_authorize_url
from .token_exchange import exchange_code_for_tokens
from .jwt_utils import decode_jwt_payload, parse_id_token_claims
from .callback_server import OAuthCallbackServer, bind_loopback_socket
from .flow import LoginFlow, launch_browser, start_oauth_login
from .manager import AccountStore, OAuthLoginManager

__all__ = [
    # Constants
    "CLIENT_ID",
    "DEFAULT_ISSUER",
    "SCOPE",
    "AUTH_CLAIM_PATH",
    "OAUTH_CALLBACK_PORT",
    "OAUTH_CALLBACK_PATH",
    "LOGIN_TIMEOUT",
    "POLL_INTERVAL",
    "redirect_uri_for_port",
    # Errors
    "OAuthLoginError",
    "BindFailure",
    "ProviderError",
    "StateMismatch",
    "MissingCode",
    "ExchangeFailure",
    "TokenResponseParseError",
    "LoginTimeoutError",
    "LoginCancelledError",
    "NoPendingLoginError",
    # Models
    "PkceCodes",
    "OAuthLoginInfo",
    "TokenResponse",
    "IdTokenClaims",
    "AuthMode",
    "ChatGPTAuthData",
    "StoredAccount",
    "AccountInfo",
    # PKCE / Authorization
    "generate_pkce",
    "generate_state",
    "build_authorize_url",
    # Token Exchange
    "exchange_code_for_tokens",
    # JWT Utilities
    "decode_jwt_payload",
    "parse_id_token_claims",
    # Callback Server
    "OAuthCallbackServer",
    "bind_loopback_socket",
    # Flow
    "LoginFlow",
    "launch_browser",
    "start_oauth_login",
    "OAuthLoginManager",
    "AccountStore",
]
