"""CLI: wellness browse|mine|delete"""

import json

import click
from rich.console import Console
from rich.table import Table

from wellness_sessions.listing import StatusFilter
from wellness_sessions.models.session import Session

console = Console()


def _get_client():
    from wellness_sessions.cli.main import _get_client
    return _get_client()


def _print_notice(notice):
    from wellness_sessions.cli.main import _print_notice
    _print_notice(notice)


def _run(coro):
    from wellness_sessions.cli.main import _run
    return _run(coro)


def _session_table(title: str, sessions: list[Session], show_status: bool = False) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="bold")
    if show_status:
        table.add_column("Status")
    table.add_column("Title")
    table.add_column("Tags")
    table.add_column("Updated")
    for s in sessions:
        row = [s.id or "", s.title, ", ".join(s.tags), s.updated_at or ""]
        if show_status:
            row.insert(1, s.status.value)
        table.add_row(*row)
    return table


@click.command("browse")
@click.option("--page", default=1, type=int)
@click.option("--tags", default="", help="Comma-separated tag filter")
@click.option("--search", default="", help="Title search within the fetched page")
@click.option("--json-output", "--json", is_flag=True)
def browse(page, tags, search, json_output):
    """Browse published sessions."""

    async def _browse():
        async with _get_client() as client:
            browser = client.browser(on_notice=_print_notice)
            if not await browser.query(page, tags, search):
                raise SystemExit(1)
            if json_output:
                click.echo(json.dumps({
                    "sessions": [s.model_dump(mode="json") for s in browser.results],
                    "pagination": browser.pagination.model_dump(),
                }, indent=2))
                return
            first, last, total = browser.displayed_range
            meta = browser.pagination
            console.print(_session_table(f"Sessions (page {meta.current_page} of {meta.total_pages})", browser.results))
            if total:
                console.print(f"[dim]Showing {first} to {last} of {total} results[/dim]")
            if search.strip():
                console.print("[dim]Title search applies to this page only.[/dim]")

    _run(_browse())


@click.command("mine")
@click.option("--status", "status_filter", default="all", type=click.Choice([f.value for f in StatusFilter]))
@click.option("--json-output", "--json", is_flag=True)
def mine(status_filter, json_output):
    """List your own sessions."""

    async def _mine():
        async with _get_client() as client:
            controller = client.my_sessions(on_notice=_print_notice)
            if not await controller.load_mine(status_filter):
                raise SystemExit(1)
            if json_output:
                click.echo(json.dumps([s.model_dump(mode="json") for s in controller.sessions], indent=2))
                return
            counts = controller.counts
            console.print(_session_table("My sessions", controller.sessions, show_status=True))
            console.print(
                f"[dim]all {counts['all']} · draft {counts['draft']} · published {counts['published']}[/dim]"
            )

    _run(_mine())


@click.command("delete")
@click.argument("session_id")
@click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt")
def delete(session_id, yes):
    """Delete one of your sessions."""

    async def _delete():
        async with _get_client() as client:
            controller = client.my_sessions(on_notice=_print_notice)
            if not await controller.load_mine(StatusFilter.ALL):
                raise SystemExit(1)
            target = next((s for s in controller.sessions if s.id == session_id), None)
            if target is None:
                console.print(f"[red]No session {session_id} among your sessions.[/red]")
                raise SystemExit(1)
            pending = controller.request_delete(target)
            if not yes and not click.confirm(
                f'Are you sure you want to delete "{pending.title}"? This action cannot be undone.'
            ):
                controller.cancel_delete()
                return
            with console.status("Deleting..."):
                deleted = await controller.confirm_delete()
            if not deleted:
                raise SystemExit(1)

    _run(_delete())
