"""CLI package for codex-login

Provides the command-line front end for the browser-based Codex OAuth
login flow.
"""

from cli.main import main

__all__ = [
    "main",
]
