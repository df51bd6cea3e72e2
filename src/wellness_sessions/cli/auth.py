"""CLI: wellness auth login|status|logout

Obtaining a token is the auth service's job; this only stores one.
"""

from typing import Optional

import click
from rich.console import Console

console = Console()


def _load_config() -> dict:
    from wellness_sessions.cli.main import _load_config
    return _load_config()


def _save_config(cfg: dict) -> None:
    from wellness_sessions.cli.main import _save_config
    _save_config(cfg)


@click.group()
def auth():
    """Authentication commands."""


@auth.command("login")
@click.option("--token", prompt=True, hide_input=True, help="Access token issued by the auth service")
@click.option("--email", default=None, help="Account email, shown by `auth status`")
@click.option("--base-url", default=None, help="API base URL")
def auth_login(token: str, email: Optional[str], base_url: Optional[str]):
    """Store an access token for later commands."""
    cfg = _load_config()
    cfg["access_token"] = token.strip()
    if email:
        cfg["email"] = email
    if base_url:
        cfg["base_url"] = base_url
    _save_config(cfg)
    console.print("[green]Token saved to ~/.wellness/config.json[/green]")


@auth.command("status")
def auth_status():
    """Show current auth status."""
    cfg = _load_config()
    if cfg.get("access_token"):
        console.print(f"[green]Logged in[/green] as {cfg.get('email', 'unknown')}")
    else:
        console.print("[yellow]Not logged in. Run `wellness auth login`.[/yellow]")


@auth.command("logout")
def auth_logout():
    """Clear saved credentials."""
    cfg = _load_config()
    cfg.pop("access_token", None)
    cfg.pop("email", None)
    _save_config(cfg)
    console.print("[green]Logged out.[/green]")
