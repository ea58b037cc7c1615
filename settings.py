from config.loader import get_config_loader
import codex_login.constants as defaults

config = get_config_loader()

# Logging
LOG_LEVEL = config.get("LOG_LEVEL", "info")
DEBUG_LOG_FILE = config.get("CODEX_LOGIN_DEBUG_LOG", "codex_login_debug.log")

# OAuth provider. The client ID is the one registered for the Codex CLI;
# overriding it is only useful against a test issuer.
CODEX_OAUTH_ISSUER = config.get("CODEX_OAUTH_ISSUER", defaults.DEFAULT_ISSUER)
CODEX_CLIENT_ID = config.get("CODEX_CLIENT_ID", defaults.CLIENT_ID)

# Loopback callback server
# Only the default port is known to be registered with the provider
OAUTH_CALLBACK_PORT = config.get_port("OAUTH_CALLBACK_PORT", defaults.OAUTH_CALLBACK_PORT)
# Wall-clock deadline for the browser callback
OAUTH_LOGIN_TIMEOUT = config.get_seconds("OAUTH_LOGIN_TIMEOUT", float(defaults.LOGIN_TIMEOUT))
# Cancellation/deadline check cadence; must stay sub-second
OAUTH_POLL_INTERVAL = config.get_seconds("OAUTH_POLL_INTERVAL", defaults.POLL_INTERVAL, upper=1.0)

# Token endpoint request timeout
TOKEN_EXCHANGE_TIMEOUT = config.get_seconds("TOKEN_EXCHANGE_TIMEOUT", defaults.TOKEN_EXCHANGE_TIMEOUT)
