"""CLI entry point and argument parsing"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

import settings
from codex_login import (
    AccountInfo,
    LoginCancelledError,
    OAuthLoginError,
    OAuthLoginManager,
    StoredAccount,
)
from utils.debug_console import configure_logging

logger = logging.getLogger(__name__)


def port_number(value: str) -> int:
    """argparse type for a TCP port (0 lets the OS choose)"""
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port: {value!r}")
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port must be between 0 and 65535, got {port}")
    return port


def positive_seconds(value: str) -> float:
    """argparse type for a positive number of seconds"""
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number of seconds: {value!r}")
    if not seconds > 0:
        raise argparse.ArgumentTypeError(f"timeout must be positive, got {value}")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="codex-login",
        description="Sign in to a ChatGPT account for Codex through a local browser callback",
    )
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    login = subparsers.add_parser("login", help="Run the browser login flow")
    login.add_argument("--name", "-n", required=True, help="Display name for the new account")
    login.add_argument(
        "--port",
        type=port_number,
        default=settings.OAUTH_CALLBACK_PORT,
        help=f"Preferred callback port (default: {settings.OAUTH_CALLBACK_PORT})",
    )
    login.add_argument(
        "--timeout",
        type=positive_seconds,
        default=settings.OAUTH_LOGIN_TIMEOUT,
        help="Seconds to wait for the browser callback",
    )
    login.add_argument(
        "--no-browser",
        action="store_true",
        help="Only print the authorization URL instead of opening a browser",
    )
    login.add_argument(
        "--output",
        "-o",
        default=None,
        help="Write the resulting credential record as JSON to this file",
    )
    login.add_argument("--json", action="store_true", help="Print the account summary as JSON")
    return parser


def write_account_file(account: StoredAccount, path: Path) -> None:
    """Write the credential record with owner-only permissions"""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(account.to_dict(), indent=2))
    path.chmod(0o600)
    logger.debug(f"Saved account {account.id} to {path}")


def print_account(console: Console, info: AccountInfo) -> None:
    table = Table(show_header=False, box=None)
    table.add_row("[bold]Name[/bold]", info.name)
    table.add_row("[bold]Email[/bold]", info.email or "[dim]unknown[/dim]")
    table.add_row("[bold]Plan[/bold]", info.plan_type or "[dim]unknown[/dim]")
    table.add_row("[bold]Account ID[/bold]", info.id)
    console.print(table)


def run_login(args: argparse.Namespace, console: Console) -> int:
    manager = OAuthLoginManager(
        issuer=settings.CODEX_OAUTH_ISSUER,
        client_id=settings.CODEX_CLIENT_ID,
        preferred_port=args.port,
        timeout=args.timeout,
        poll_interval=settings.OAUTH_POLL_INTERVAL,
        open_browser=not args.no_browser,
        exchange_timeout=settings.TOKEN_EXCHANGE_TIMEOUT,
    )

    try:
        info = manager.start_login(args.name)
        console.print("\n[bold]Step 1:[/bold] Complete the login in your browser")
        if args.no_browser:
            console.print("Open this URL to continue:")
        else:
            console.print("[dim]If the browser did not open, use this URL:[/dim]")
        console.print(info.auth_url, soft_wrap=True)
        console.print(f"\n[bold]Step 2:[/bold] Waiting for the callback on port {info.callback_port}...")

        account = manager.complete_login()
    except KeyboardInterrupt:
        manager.cancel_login()
        console.print("\n[yellow]Login cancelled by user[/yellow]")
        return LoginCancelledError.exit_code
    except OAuthLoginError as e:
        console.print(f"[red]Login failed:[/red] {e}")
        return e.exit_code

    console.print("[green][OK][/green] Login successful!")

    if args.output:
        output = Path(args.output).expanduser()
        try:
            write_account_file(account, output)
        except OSError as e:
            console.print(f"[red]Failed to write {output}:[/red] {e}")
            return 1
        console.print(f"[dim]Credentials written to {output}[/dim]")

    summary = AccountInfo.from_stored(account, active_id=None)
    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_account(console, summary)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI"""
    args = build_parser().parse_args(argv)
    console, _ = configure_logging(settings.LOG_LEVEL, args.debug, settings.DEBUG_LOG_FILE)

    try:
        if args.command == "login":
            return run_login(args, console)
    except Exception as e:
        console.print(f"\n[red]Fatal error:[/red] {e}")
        if args.debug:
            logger.exception("Unhandled error")
        return 1
    return 2


if __name__ == "__main__":
    sys.exit(main())
