"""Console and logging setup for the login CLI.

Normal runs log to stderr at the configured level. In debug mode the root
logger also appends to a debug log file, and a Rich console is used that
mirrors everything it prints into that file as plain text, so a single
file holds the whole login session.
"""

import io
import logging
import os
import re
from typing import Optional, Tuple
from rich.console import Console as RichConsole

_ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class DebugCapturingConsole(RichConsole):
    """
    Rich Console that also writes a plain-text copy of its output to a logger.

    Terminal output keeps its formatting; the logger receives the rendered
    text without markup or ANSI codes.
    """

    def __init__(self, debug_logger: Optional[logging.Logger] = None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.debug_logger = debug_logger
        self._log_prefix = "[CONSOLE] "

    def print(self, *objects, **kwargs):
        super().print(*objects, **kwargs)

        if self.debug_logger and self.debug_logger.isEnabledFor(logging.DEBUG):
            plain_text = self._render_to_plain_text(*objects, **kwargs)
            if plain_text.strip():
                self.debug_logger.debug(f"{self._log_prefix}{plain_text}")

    def _render_to_plain_text(self, *objects, **kwargs) -> str:
        """Render the objects the way print would, minus styling"""
        buffer = io.StringIO()
        plain = RichConsole(
            file=buffer,
            force_terminal=False,
            width=self.width,
            legacy_windows=False
        )
        plain.print(*objects, **kwargs)
        return _ANSI_ESCAPE.sub('', buffer.getvalue()).rstrip()


def create_debug_console(debug_enabled: bool = False,
                         debug_logger: Optional[logging.Logger] = None) -> RichConsole:
    """
    Create appropriate console instance based on debug mode.

    Returns:
        DebugCapturingConsole if debug enabled, regular Console otherwise
    """
    if debug_enabled and debug_logger:
        return DebugCapturingConsole(debug_logger=debug_logger)
    return RichConsole()


def setup_debug_logger(log_file: str) -> logging.Logger:
    """
    Set up a dedicated logger for captured console output.

    Args:
        log_file: Path to debug log file (appended to)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("debug_console")
    logger.setLevel(logging.DEBUG)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(message)s'))
    logger.addHandler(file_handler)

    # Console output already reaches the terminal through Rich
    logger.propagate = False

    return logger


def configure_logging(level: str = "info",
                      debug: bool = False,
                      log_file: str = "codex_login_debug.log") -> Tuple[RichConsole, Optional[logging.Logger]]:
    """
    Configure the root logger and pick the console for a CLI session.

    Args:
        level: Log level name used when not in debug mode
        debug: Enable DEBUG level and the debug log file
        log_file: Debug log file path

    Returns:
        Tuple of (console, debug console logger or None)
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if not debug:
        numeric_level = logging.getLevelName(str(level).upper())
        if not isinstance(numeric_level, int):
            numeric_level = logging.INFO
        root_logger.setLevel(numeric_level)
        return RichConsole(), None

    root_logger.setLevel(logging.DEBUG)
    log_file = os.path.abspath(log_file)
    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    debug_logger = setup_debug_logger(log_file)
    debug_logger.debug("[CLI] ===== LOGIN SESSION STARTED =====")
    logging.getLogger(__name__).info(f"Debug logging enabled - appending to {log_file}")

    return create_debug_console(debug_enabled=True, debug_logger=debug_logger), debug_logger
