# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Mirrowel

"""
Command-line helper for the one-time Twitch login.

Prints where to log in and the state of the stored access-token, without
starting the web server.

    python -m keeper_app.setup_cli [--env-file .env]
"""

import argparse
import sys
from typing import Optional
from urllib.parse import urlsplit, urlunsplit

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from credential_keeper import AuthConfig, CredentialStore, ReadOutcome
from credential_keeper.utils import format_credential_for_display

console = Console()


def login_url_for(redirect_uri: str) -> str:
    """The keeper's /login route, served next to the configured callback."""
    parts = urlsplit(redirect_uri)
    return urlunsplit((parts.scheme, parts.netloc, "/login", "", ""))


def render_stored_credential(store: CredentialStore) -> Table:
    table = Table(title=f"Stored credentials ({store.file_path})")
    table.add_column("Slot")
    table.add_column("Access token")

    result = store.load()
    if result.outcome is ReadOutcome.NOT_FOUND:
        table.add_row("-", "[yellow]no tokens.json yet[/yellow]")
        return table
    if result.outcome is ReadOutcome.PARSE_ERROR:
        table.add_row("-", f"[red]{result.error}[/red]")
        return table

    history = result.history
    table.add_row("current", format_credential_for_display(history.current))
    for index, credential in enumerate(reversed(history.previous), start=1):
        table.add_row(f"previous -{index}", format_credential_for_display(credential))
    return table


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Twitch access-token setup helper")
    parser.add_argument("--env-file", default=None, help="Path to a .env file")
    args = parser.parse_args(argv)

    config = AuthConfig.from_env(args.env_file)
    if not config.client_id:
        console.print("[bold red]CLIENT_ID is not set.[/bold red]")
        return 1

    console.print(
        Panel(
            Text.from_markup(
                "Start the keeper web server, then open the URL below in a browser.\n"
                f"Twitch redirects back to [bold]{config.redirect_uri}[/bold], which stores the new access-token.\n"
                f"Scopes: {' '.join(config.scopes)}"
            ),
            title="Twitch OAuth Setup",
            style="bold blue",
        )
    )
    console.print(f"[bold]URL:[/bold] {login_url_for(config.redirect_uri)}\n")
    console.print(render_stored_credential(CredentialStore(config.tokens_file)))

    if not config.has_channel_identity:
        console.print(
            "[yellow]TWITCH_CHANNELS_ID is empty: the stored token will not be loaded at startup.[/yellow]"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
