"""CLI: wellness draft, wellness edit"""

import asyncio
import functools
from typing import Optional

import click
from rich.console import Console

from wellness_sessions.autosave import DraftEditor
from wellness_sessions.status import SaveStatus

console = Console()

FIELD_ALIASES = {"title": "title", "tags": "tags", "url": "data_url", "data_url": "data_url"}

STATUS_LABELS = {
    SaveStatus.SAVING: "[blue]Auto-saving...[/blue]",
    SaveStatus.SAVED: "[green]Auto-saved[/green]",
    SaveStatus.FAILED: "[red]Auto-save failed[/red]",
}


def _get_client():
    from wellness_sessions.cli.main import _get_client
    return _get_client()


def _print_notice(notice):
    from wellness_sessions.cli.main import _print_notice
    _print_notice(notice)


def _run(coro):
    from wellness_sessions.cli.main import _run
    return _run(coro)


def _print_status(status: SaveStatus) -> None:
    label = STATUS_LABELS.get(status)
    if label:
        console.print(f"  {label}")


def _print_errors(editor: DraftEditor) -> None:
    for field, message in editor.errors.items():
        console.print(f"[red]{field}: {message}[/red]")


def _show(editor: DraftEditor) -> None:
    fields = editor.fields
    console.print(f"[bold]{'Edit Session' if editor.session_id else 'Create New Session'}[/bold]"
                  f" [dim]{editor.session_id or ''}[/dim]")
    console.print(f"  title: {fields.title} [dim]({len(fields.title)}/200)[/dim]")
    console.print(f"  tags:  {', '.join(fields.tags)}")
    console.print(f"  url:   {fields.data_url}")


@click.command("draft")
@click.option("--title", default=None)
@click.option("--tags", default=None, help="Comma-separated tags")
@click.option("--url", "data_url", default=None, help="URL of the session data file")
@click.option("-s", "--session-id", default=None, help="Update an existing session instead of creating one")
@click.option("--publish", "publish_now", is_flag=True, help="Publish instead of saving a draft")
def draft(title: Optional[str], tags: Optional[str], data_url: Optional[str],
          session_id: Optional[str], publish_now: bool):
    """Save or publish a session in one shot."""

    async def _draft():
        async with _get_client() as client:
            if session_id:
                editor = await client.edit_existing(session_id, on_notice=_print_notice)
            else:
                editor = client.editor(on_notice=_print_notice)
            try:
                if title is not None:
                    editor.on_field_change("title", title)
                if tags is not None:
                    editor.on_tags_text_change(tags)
                if data_url is not None:
                    editor.on_field_change("data_url", data_url)
                ok = await (editor.publish() if publish_now else editor.save_draft_now())
            finally:
                await editor.aclose()
            if not ok:
                _print_errors(editor)
                raise SystemExit(1)
            console.print(f"[dim]Session: {editor.published.id if editor.published else editor.session_id}[/dim]")

    _run(_draft())


@click.command("edit")
@click.argument("session_id", required=False)
def edit(session_id: Optional[str]):
    """Interactive editor. Edits autosave after a quiet period."""

    async def _edit():
        async with _get_client() as client:
            kwargs = {"on_status": _print_status, "on_notice": _print_notice}
            if session_id:
                editor = await client.edit_existing(session_id, **kwargs)
            else:
                editor = client.editor(**kwargs)
            _show(editor)
            console.print("[cyan]Enter field=value (title, tags, url). "
                          "Commands: :save :publish :show :quit[/cyan]\n")
            loop = asyncio.get_running_loop()
            prompt = functools.partial(click.prompt, ">", default="", show_default=False, prompt_suffix=" ")
            try:
                while not editor.closed:
                    line = (await loop.run_in_executor(None, prompt)).strip()
                    if not line:
                        continue
                    if line in (":quit", ":q"):
                        break
                    if line == ":save":
                        await editor.save_draft_now()
                    elif line == ":publish":
                        if not await editor.publish():
                            _print_errors(editor)
                    elif line == ":show":
                        _show(editor)
                    elif "=" in line:
                        name, _, value = line.partition("=")
                        field = FIELD_ALIASES.get(name.strip().lower())
                        if field is None:
                            console.print(f"[yellow]Unknown field {name.strip()!r}[/yellow]")
                            continue
                        editor.on_field_change(field, value.strip())
                    else:
                        console.print("[yellow]Expected field=value or a :command[/yellow]")
            except (KeyboardInterrupt, EOFError, click.Abort):
                pass
            finally:
                await editor.aclose()
            if not editor.closed and editor.has_unsaved_changes:
                console.print("[yellow]Some edits were not saved.[/yellow]")

    _run(_edit())
