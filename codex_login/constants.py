"""Codex OAuth constants (from openai/codex CLI)"""

# OAuth Configuration
DEFAULT_ISSUER = "https://auth.openai.com"
CLIENT_ID = "app_EMoamEEZ73f0CkXaXp7hrann"
SCOPE = "openid profile email offline_access"
ORIGINATOR = "codex_cli_rs"

# Claim object inside the ID token carrying ChatGPT account data
AUTH_CLAIM_PATH = "https://api.openai.com/auth"
PLAN_TYPE_CLAIM = "chatgpt_plan_type"
ACCOUNT_ID_CLAIM = "chatgpt_account_id"

# OAuth callback server
LOOPBACK_HOST = "127.0.0.1"
OAUTH_CALLBACK_PORT = 1455  # Same as the official Codex CLI
OAUTH_CALLBACK_PATH = "/auth/callback"

# Flow timing (seconds)
LOGIN_TIMEOUT = 300
POLL_INTERVAL = 0.5
TOKEN_EXCHANGE_TIMEOUT = 60.0


def redirect_uri_for_port(port: int) -> str:
    """Redirect URI registered with the provider for a callback port"""
    return f"http://localhost:{port}{OAUTH_CALLBACK_PATH}"
