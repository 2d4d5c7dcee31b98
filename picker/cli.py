"""
This file is the entry point for the 'filepilot' command-line tool.
Run 'filepilot --help' in your shell to use the CLI.

Every command fetches the current folder list from Drive, so the output
always reflects a fresh tree.
"""
import json
from pathlib import Path
from typing import Optional

import httpx
import typer

from common.app_setup import console, print_and_log, print_error, setup_logging
from common.settings import Settings, load_settings
from connectors.drive_connector import DriveFolderConnector, DriveSession
from connectors.setup_webhook import SetupWebhook
from folders.models import ROOT_ID
from folders.tree import filter_tree
from picker.render import render_tree
from picker.session import FolderPicker, PickerError

app = typer.Typer(add_completion=False, help="Pick the Google Drive folder FilePilot organizes attachments into.")


def build_picker(settings: Settings) -> FolderPicker:
    """Wire a picker to Drive (and the setup webhook, when configured)."""
    if not settings.access_token:
        raise PickerError("No Google Drive access token found. Use --token or set FILEPILOT_ACCESS_TOKEN.")
    session = DriveSession(settings.access_token, base_URL=settings.base_url, timeout=settings.timeout)
    connector = DriveFolderConnector(session, page_size=settings.page_size, max_pages=settings.max_pages)
    webhook = SetupWebhook(str(settings.webhook_url), timeout=settings.timeout) if settings.webhook_url else None
    return FolderPicker(connector, webhook=webhook)


def _load_picker(ctx: typer.Context) -> FolderPicker:
    settings: Settings = ctx.obj
    try:
        picker = build_picker(settings)
    except PickerError as e:
        print_error(str(e))
        raise typer.Exit(1)
    if not picker.refresh():
        print_error(f"No folders found. Please make sure you have access to Google Drive. ({picker.error})")
        raise typer.Exit(1)
    return picker


@app.callback()
def main(ctx: typer.Context,
         config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file (default ~/.filepilot/config.yaml)"),
         token: Optional[str] = typer.Option(None, "--token", help="Google Drive OAuth access token"),
         base_url: Optional[str] = typer.Option(None, "--base-url", help="Drive API base URL"),
         verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug messages")):
    try:
        settings = load_settings(config)
        overrides = {k: v for k, v in {"access_token": token, "drive_base_url": base_url}.items() if v}
        if overrides:
            settings = Settings.model_validate({**settings.model_dump(), **overrides})
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)
    setup_logging(app_name="filepilot", loglevel="DEBUG" if verbose else settings.log_level, logfile=settings.log_file)
    ctx.obj = settings


@app.command()
def tree(ctx: typer.Context,
         search: str = typer.Option("", "--search", "-s", help="Only show folders whose name contains this text, level by level"),
         collapsed: bool = typer.Option(False, "--collapsed", help="Show only the top-level folders"),
         as_json: bool = typer.Option(False, "--json", help="Print the (filtered) tree as JSON")):
    """Show the Drive folder tree with the path of every folder."""
    picker = _load_picker(ctx)
    if as_json:
        print(json.dumps(filter_tree(picker.root, search).to_dict(), indent=2))
        return
    if not collapsed:
        picker.expand_all()
    picker.search(search)
    console.print(render_tree(picker.rows()))
    print_and_log(f"{picker.folder_count} folders")


@app.command()
def search(ctx: typer.Context, query: str = typer.Argument(..., help="Case-insensitive text to look for")):
    """List matching folders with their paths (matching is shallow: a hidden folder hides its subfolders)."""
    picker = _load_picker(ctx)
    picker.expand_all()
    picker.search(query)
    matches = [row.node for row in picker.rows() if not row.node.is_root]
    if not matches:
        print_and_log(f"No folders match {query!r}")
        return
    for node in matches:
        print(f"{node.id}\t{node.path}")


@app.command("create-folder")
def create_folder(ctx: typer.Context,
                  name: str = typer.Argument(..., help="Name of the new folder"),
                  parent: str = typer.Option(ROOT_ID, "--parent", help="Parent folder id (default: top of My Drive)")):
    """Create a folder in Drive and show where it landed."""
    picker = _load_picker(ctx)
    try:
        node = picker.create_folder(name, parent_id=parent)
    except (PickerError, ValueError, httpx.HTTPError) as e:
        print_error(f"Error creating folder: {e}")
        raise typer.Exit(1)
    print_and_log(f"Created folder {node.path} ({node.id})")


@app.command()
def select(ctx: typer.Context,
           folder_id: str = typer.Argument(..., help="Id of the folder to organize into"),
           confirm: bool = typer.Option(False, "--confirm", help="Complete the folder step and notify the setup webhook")):
    """Select the destination folder and optionally confirm it."""
    settings: Settings = ctx.obj
    picker = _load_picker(ctx)
    try:
        node = picker.select(folder_id)
    except PickerError as e:
        print_error(str(e))
        raise typer.Exit(1)
    print_and_log(f"Selected {node.name}: {node.path}")
    if confirm:
        result = picker.confirm(settings.user_id, settings.email, settings.provider)
        print_and_log(f"Setup complete, attachments will be organized into {result.path}")
        if picker.webhook is not None and not result.webhook_sent:
            print_error("Setup webhook could not be notified")


@app.command()
def pick(ctx: typer.Context):
    """Open the interactive folder picker."""
    from picker.tui import FolderPickerApp

    settings: Settings = ctx.obj
    picker = _load_picker(ctx)
    result = FolderPickerApp(picker, user_id=settings.user_id, email=settings.email, provider=settings.provider).run()
    if result is None:
        print_and_log("No folder confirmed")
        raise typer.Exit(1)
    print_and_log(f"Setup complete, attachments will be organized into {result.path}")


if __name__ == "__main__":
    app()
