"""
Wellness sessions CLI: `wellness` command.

Commands:
  wellness auth login --token   Store an access token
  wellness browse               Page through published sessions
  wellness mine                 List your drafts and published sessions
  wellness delete <id>          Delete one of your sessions
  wellness draft                Save or publish a session in one shot
  wellness edit [id]            Interactive editor with autosave
"""

import asyncio
import json
import logging
import os
from pathlib import Path

try:
    import click
    from rich.console import Console
except ImportError:
    raise SystemExit("CLI requires extras: pip install wellness-sessions[cli]")

from wellness_sessions.client import AsyncWellnessClient
from wellness_sessions.notices import Notice, NoticeKind
from wellness_sessions.transport.http import DEFAULT_BASE_URL

console = Console()
CONFIG_FILE = Path.home() / ".wellness" / "config.json"
BASE_URL_ENV = "WELLNESS_BASE_URL"


def _load_config() -> dict:
    try:
        return json.loads(CONFIG_FILE.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}


def _save_config(cfg: dict) -> None:
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(json.dumps(cfg, indent=2))


def _base_url(cfg: dict) -> str:
    return os.environ.get(BASE_URL_ENV) or cfg.get("base_url") or DEFAULT_BASE_URL


def _clear_token() -> None:
    cfg = _load_config()
    cfg.pop("access_token", None)
    _save_config(cfg)
    console.print("[red]Session expired. Run `wellness auth login` again.[/red]")


def _get_client() -> AsyncWellnessClient:
    cfg = _load_config()
    if not cfg.get("access_token"):
        console.print("[red]Not logged in. Run `wellness auth login` first.[/red]")
        raise SystemExit(1)
    return AsyncWellnessClient(
        access_token=cfg["access_token"],
        base_url=_base_url(cfg),
        on_unauthorized=_clear_token,
    )


def _print_notice(notice: Notice) -> None:
    color = "green" if notice.kind == NoticeKind.SUCCESS else "red"
    console.print(f"[{color}]{notice.message}[/{color}]")


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """Wellness sessions CLI: author, autosave and browse wellness sessions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Register subcommands from separate modules
from wellness_sessions.cli.auth import auth
from wellness_sessions.cli.sessions import browse, mine, delete
from wellness_sessions.cli.editor import draft, edit

main.add_command(auth)
main.add_command(browse)
main.add_command(mine)
main.add_command(delete)
main.add_command(draft)
main.add_command(edit)


if __name__ == "__main__":
    main()
