#!/usr/bin/env python3
import subprocess
from types import SimpleNamespace
from typing import List, Optional

import typer
from rich.console import Console

from commands import area_commands, bulk_commands, project_commands, tag_commands, todo_commands
from commands.common import get_client
from things_api.errors import Things3Error
from utils.config import load_config
from utils.logger import configure_logging

__version__ = "0.1.0"

err_console = Console(stderr=True)

# Create app instance
app = typer.Typer(
    name="thingscli",
    help="Things3 CLI - Manage to-dos, projects, areas and tags in Things3.",
    no_args_is_help=True,
)


def _version_callback(value: bool):
    if value:
        typer.echo(f"thingscli {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."
    ),
):
    """Load .things3.env and set up logging before any command runs."""
    config = load_config()
    configure_logging("debug" if verbose else config.log_level, config.log_file)


def _run(handler, **kwargs):
    """Call a command handler; Things3 errors end the command with exit code 1."""
    try:
        handler(SimpleNamespace(**kwargs))
    except Things3Error as exc:
        err_console.print(f"Error: {exc}", style="red", markup=False)
        raise typer.Exit(code=1)


# --- To-dos ---

@app.command("list")
def list_todos(
    list_name: Optional[str] = typer.Option(
        None, "--list", "-l", help="Built-in list: inbox, today, upcoming, anytime, someday, logbook."
    ),
    status: Optional[str] = typer.Option(None, "--status", help="open, completed or cancelled."),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Only to-dos whose title or notes contain this text."),
    case_sensitive: bool = typer.Option(False, "--case-sensitive", help="Match --search case-sensitively."),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum number of to-dos."),
    offset: int = typer.Option(0, "--offset", help="Skip this many to-dos before --limit applies."),
    project_id: Optional[str] = typer.Option(None, "--project", "-p", help="Project id to list."),
    area_id: Optional[str] = typer.Option(None, "--area", "-a", help="Area id to list."),
):
    """List to-dos."""
    _run(
        todo_commands.handle_list,
        list_name=list_name,
        status=status,
        search=search,
        case_sensitive=case_sensitive,
        limit=limit,
        offset=offset,
        project_id=project_id,
        area_id=area_id,
    )


@app.command("get")
def get_todo(todo_id: str = typer.Argument(..., help="To-do id.")):
    """Show one to-do with its checklist."""
    _run(todo_commands.handle_get, todo_id=todo_id)


@app.command("add")
def add(
    title: str = typer.Option(..., "--title", "-t", help="Title of the new to-do."),
    notes: Optional[str] = typer.Option(None, "--notes", help="Notes."),
    when: Optional[str] = typer.Option(None, "--when", "-w", help="Start date (today, tomorrow, YYYY-MM-DD or natural language)."),
    deadline: Optional[str] = typer.Option(None, "--deadline", "-d", help="Deadline (natural language or YYYY-MM-DD)."),
    tags: Optional[str] = typer.Option(None, "--tags", help="Comma-separated list of tags."),
    checklist: Optional[List[str]] = typer.Option(None, "--checklist", "-c", help="Checklist item; repeat for more."),
    project_id: Optional[str] = typer.Option(None, "--project", "-p", help="Project id to add the to-do to."),
    area_id: Optional[str] = typer.Option(None, "--area", "-a", help="Area id to add the to-do to."),
    heading: Optional[str] = typer.Option(None, "--heading", help="Heading inside the project."),
):
    """Create a to-do and print its id."""
    _run(
        todo_commands.handle_add,
        title=title,
        notes=notes,
        when=when,
        deadline=deadline,
        tags=tags,
        checklist=checklist,
        project_id=project_id,
        area_id=area_id,
        heading=heading,
    )


@app.command("update")
def update(
    todo_id: str = typer.Argument(..., help="To-do id."),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    notes: Optional[str] = typer.Option(None, "--notes"),
    when: Optional[str] = typer.Option(None, "--when", "-w"),
    deadline: Optional[str] = typer.Option(None, "--deadline", "-d"),
    tags: Optional[str] = typer.Option(None, "--tags", help="Replace all tags (comma-separated)."),
    checklist: Optional[List[str]] = typer.Option(None, "--checklist", "-c", help="Replace the checklist; repeat for more."),
    list_id: Optional[str] = typer.Option(None, "--list-id", help="Move to this project or area id."),
    heading: Optional[str] = typer.Option(None, "--heading"),
    clear: Optional[List[str]] = typer.Option(
        None, "--clear", help="Field to clear, e.g. --clear when --clear deadline."
    ),
):
    """Update a to-do. Fields not given are left unchanged."""
    _run(
        todo_commands.handle_update,
        todo_id=todo_id,
        title=title,
        notes=notes,
        when=when,
        deadline=deadline,
        tags=tags,
        checklist=checklist,
        list_id=list_id,
        heading=heading,
        clear=clear,
    )


@app.command("complete")
def complete(todo_ids: list[str] = typer.Argument(..., help="One or more to-do ids to complete.")):
    """Mark to-dos as completed."""
    _run(todo_commands.handle_complete, todo_ids=todo_ids)


@app.command("uncomplete")
def uncomplete(todo_ids: list[str] = typer.Argument(..., help="One or more to-do ids to reopen.")):
    """Mark completed to-dos as open again."""
    _run(todo_commands.handle_uncomplete, todo_ids=todo_ids)


@app.command("cancel")
def cancel(todo_ids: list[str] = typer.Argument(..., help="One or more to-do ids to cancel.")):
    """Mark to-dos as canceled."""
    _run(todo_commands.handle_cancel, todo_ids=todo_ids)


@app.command("delete")
def delete(todo_ids: list[str] = typer.Argument(..., help="One or more to-do ids to delete.")):
    """Delete to-dos (they go to the Things3 trash)."""
    _run(todo_commands.handle_delete, todo_ids=todo_ids)


@app.command("add-checklist")
def add_checklist(
    todo_id: str = typer.Argument(..., help="To-do id."),
    items: list[str] = typer.Argument(..., help="Checklist items to append."),
):
    """Append checklist items to a to-do."""
    _run(todo_commands.handle_add_checklist, todo_id=todo_id, items=items)


# --- Projects ---

@app.command("projects")
def projects(
    area_id: Optional[str] = typer.Option(None, "--area", "-a", help="Only projects in this area."),
    include_completed: bool = typer.Option(True, "--include-completed/--open-only"),
    search: Optional[str] = typer.Option(None, "--search", "-s"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n"),
):
    """List projects."""
    _run(
        project_commands.handle_projects,
        area_id=area_id,
        include_completed=include_completed,
        search=search,
        limit=limit,
    )


@app.command("get-project")
def get_project(project_id: str = typer.Argument(..., help="Project id.")):
    """Show one project with its headings."""
    _run(project_commands.handle_get_project, project_id=project_id)


@app.command("add-project")
def add_project(
    title: str = typer.Option(..., "--title", "-t", help="Title of the new project."),
    notes: Optional[str] = typer.Option(None, "--notes"),
    when: Optional[str] = typer.Option(None, "--when", "-w"),
    deadline: Optional[str] = typer.Option(None, "--deadline", "-d"),
    tags: Optional[str] = typer.Option(None, "--tags", help="Comma-separated list of tags."),
    area_id: Optional[str] = typer.Option(None, "--area", "-a", help="Area id for the project."),
    heading: Optional[List[str]] = typer.Option(None, "--heading", help="Heading to create; repeat for more."),
):
    """Create a project and print its id."""
    _run(
        project_commands.handle_add_project,
        title=title,
        notes=notes,
        when=when,
        deadline=deadline,
        tags=tags,
        area_id=area_id,
        heading=heading,
    )


@app.command("update-project")
def update_project(
    project_id: str = typer.Argument(..., help="Project id."),
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    notes: Optional[str] = typer.Option(None, "--notes"),
    when: Optional[str] = typer.Option(None, "--when", "-w"),
    deadline: Optional[str] = typer.Option(None, "--deadline", "-d"),
    tags: Optional[str] = typer.Option(None, "--tags", help="Replace all tags (comma-separated)."),
    area_id: Optional[str] = typer.Option(None, "--area", "-a"),
    clear: Optional[List[str]] = typer.Option(None, "--clear", help="Field to clear; repeat for more."),
):
    """Update a project. Fields not given are left unchanged."""
    _run(
        project_commands.handle_update_project,
        project_id=project_id,
        title=title,
        notes=notes,
        when=when,
        deadline=deadline,
        tags=tags,
        area_id=area_id,
        clear=clear,
    )


@app.command("complete-project")
def complete_project(project_id: str = typer.Argument(..., help="Project id.")):
    """Mark a project as completed."""
    _run(project_commands.handle_complete_project, project_id=project_id)


@app.command("delete-project")
def delete_project(project_ids: list[str] = typer.Argument(..., help="One or more project ids.")):
    """Delete projects."""
    _run(project_commands.handle_delete_project, project_ids=project_ids)


# --- Areas ---

@app.command("areas")
def areas():
    """List areas."""
    _run(area_commands.handle_areas)


@app.command("add-area")
def add_area(name: str = typer.Argument(..., help="Name of the new area.")):
    """Create an area."""
    _run(area_commands.handle_add_area, name=name)


@app.command("delete-area")
def delete_area(area_ids: list[str] = typer.Argument(..., help="One or more area ids.")):
    """Delete areas."""
    _run(area_commands.handle_delete_area, area_ids=area_ids)


# --- Tags ---

@app.command("tags")
def tags():
    """List tags."""
    _run(tag_commands.handle_tags)


@app.command("add-tag")
def add_tag(
    name: str = typer.Argument(..., help="Name of the new tag."),
    parent_id: Optional[str] = typer.Option(None, "--parent", help="Parent tag id."),
):
    """Create a tag."""
    _run(tag_commands.handle_add_tag, name=name, parent_id=parent_id)


@app.command("delete-tag")
def delete_tag(names: list[str] = typer.Argument(..., help="One or more tag names.")):
    """Delete tags by name."""
    _run(tag_commands.handle_delete_tag, names=names)


@app.command("tag")
def tag(
    item_ids: list[str] = typer.Argument(..., help="To-do or project ids."),
    tags: str = typer.Option(..., "--tags", help="Comma-separated tags to add."),
):
    """Add tags to to-dos or projects."""
    _run(tag_commands.handle_tag, item_ids=item_ids, tags=tags)


@app.command("untag")
def untag(
    item_ids: list[str] = typer.Argument(..., help="To-do or project ids."),
    tags: str = typer.Option(..., "--tags", help="Comma-separated tags to remove."),
):
    """Remove tags from to-dos or projects."""
    _run(tag_commands.handle_untag, item_ids=item_ids, tags=tags)


# --- Bulk and logbook ---

@app.command("bulk-move")
def bulk_move(
    todo_ids: list[str] = typer.Argument(..., help="To-do ids to move."),
    project_id: Optional[str] = typer.Option(None, "--project", "-p"),
    area_id: Optional[str] = typer.Option(None, "--area", "-a"),
    inbox: bool = typer.Option(False, "--inbox", help="Move back to the Inbox."),
):
    """Move several to-dos at once."""
    _run(bulk_commands.handle_bulk_move, todo_ids=todo_ids, project_id=project_id, area_id=area_id, inbox=inbox)


@app.command("bulk-set-dates")
def bulk_set_dates(
    todo_ids: list[str] = typer.Argument(..., help="To-do ids to update."),
    when: Optional[str] = typer.Option(None, "--when", "-w"),
    deadline: Optional[str] = typer.Option(None, "--deadline", "-d"),
    clear_when: bool = typer.Option(False, "--clear-when"),
    clear_deadline: bool = typer.Option(False, "--clear-deadline"),
):
    """Set or clear the start date and deadline of several to-dos."""
    _run(
        bulk_commands.handle_bulk_set_dates,
        todo_ids=todo_ids,
        when=when,
        deadline=deadline,
        clear_when=clear_when,
        clear_deadline=clear_deadline,
    )


@app.command("logbook")
def logbook(
    search: Optional[str] = typer.Option(None, "--search", "-s"),
    from_date: Optional[str] = typer.Option(None, "--from", help="Completed on or after this date."),
    to_date: Optional[str] = typer.Option(None, "--to", help="Completed on or before this date."),
    limit: int = typer.Option(100, "--limit", "-n"),
):
    """Search completed to-dos."""
    _run(bulk_commands.handle_logbook, search=search, from_date=from_date, to_date=to_date, limit=limit)


@app.command("diagnostics")
def diagnostics():
    """Health check - Things3 process, version, auth token and database."""
    console = Console()
    config = load_config()

    # 1) Things3 app process
    error_msg = None
    try:
        result = subprocess.run(["pgrep", "-x", "Things3"], capture_output=True)
        is_running = result.returncode == 0
    except OSError as e:
        is_running = False
        error_msg = str(e)
    console.print(("✅" if is_running else "❌") + " Things3 running", style="green" if is_running else "red")
    if error_msg:
        console.print(f"    {error_msg}")

    # 2) AppleScript access
    if is_running:
        try:
            version = get_client().version()
            console.print(f"✅ Things3 version {version}", style="green")
        except Things3Error as e:
            console.print(f"❌ AppleScript failed: {e}", style="red", markup=False)

    # 3) Auth token, needed for updates
    if config.auth_token:
        console.print("✅ THINGS3_AUTH_TOKEN set", style="green")
    else:
        console.print("❌ THINGS3_AUTH_TOKEN not set - updates will be rejected", style="red")

    # 4) Database for checklist items
    if config.database_path.exists():
        console.print(f"✅ Database found: {config.database_path}", style="green")
    else:
        console.print(f"❌ Database not found: {config.database_path}", style="red")


if __name__ == "__main__":
    app()
