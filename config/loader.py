"""Configuration loader for the Codex OAuth login tool

Values come from, highest priority first:
1. Process environment
2. The .env file (``CODEX_LOGIN_ENV_FILE`` or ``./.env``)
3. Defaults passed by settings.py
"""

import logging
import os
from pathlib import Path
from typing import Any, Callable, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("true", "1", "yes", "on")


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in _TRUE_VALUES


class ConfigLoader:
    """Reads login settings from the environment with typed fallbacks"""

    def __init__(self, env_path: Optional[str] = None):
        """
        Args:
            env_path: .env file to load. Defaults to ``$CODEX_LOGIN_ENV_FILE``,
                then '.env' in the current directory.
        """
        self.env_path = Path(env_path or os.getenv("CODEX_LOGIN_ENV_FILE") or ".env")
        self.env_loaded = self._load_env_file()

    def _load_env_file(self) -> bool:
        if not self.env_path.is_file():
            logger.debug(f"No .env file at {self.env_path}; using environment and defaults")
            return False

        # Exported variables win over the file
        load_dotenv(dotenv_path=self.env_path, override=False)
        logger.debug(f"Loaded settings from {self.env_path}")
        return True

    def _coerce(self, env_var: str, raw: str, default: Any) -> Any:
        # bool is an int subclass, so it must be matched first
        if isinstance(default, bool):
            return _parse_bool(raw)

        parser: Optional[Callable[[str], Any]] = None
        if isinstance(default, int):
            parser = int
        elif isinstance(default, float):
            parser = float
        if parser is None:
            return raw

        try:
            return parser(raw.strip())
        except ValueError:
            logger.warning(
                f"Ignoring {env_var}={raw!r}: not a valid {parser.__name__}, using default {default}"
            )
            return default

    def get(self, env_var: str, default: Any) -> Any:
        """Get a setting, coerced to the type of ``default``

        Args:
            env_var: Environment variable name
            default: Value used when the variable is unset or unparsable;
                its type (bool, int, float or str) drives coercion

        Returns:
            The configured value
        """
        raw = os.getenv(env_var)
        if raw is None:
            if isinstance(default, str) and default.startswith("~/"):
                return str(Path(default).expanduser())
            return default
        return self._coerce(env_var, raw, default)

    def get_port(self, env_var: str, default: int) -> int:
        """Get a TCP port; out-of-range values fall back to ``default``"""
        port = self.get(env_var, default)
        if not 0 <= port <= 65535:
            logger.warning(f"Ignoring {env_var}={port}: not a TCP port, using default {default}")
            return default
        return port

    def get_seconds(self, env_var: str, default: float, upper: Optional[float] = None) -> float:
        """Get a positive duration, optionally bounded above (exclusive)

        Args:
            env_var: Environment variable name
            default: Fallback duration in seconds
            upper: Exclusive upper bound, if any

        Returns:
            The configured duration
        """
        seconds = float(self.get(env_var, float(default)))
        if seconds <= 0 or (upper is not None and seconds >= upper):
            bound = f" and below {upper:g}" if upper is not None else ""
            logger.warning(
                f"Ignoring {env_var}={seconds:g}: must be positive{bound}, using default {default:g}"
            )
            return default
        return seconds


_config_loader: Optional[ConfigLoader] = None


def get_config_loader() -> ConfigLoader:
    """Get or create the process-wide ConfigLoader"""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader
