"""Handlers for the to-do commands."""
from . import common

UPDATABLE_FIELDS = ("title", "notes", "when", "deadline", "tags", "checklist_items", "list_id", "heading")


def handle_list(args):
    """List to-dos from a built-in list, a project or an area."""
    client = common.get_client()
    todos = client.list_todos(
        filter_name=args.list_name,
        status=args.status,
        search_text=args.search,
        limit=args.limit,
        offset=args.offset,
        case_sensitive=args.case_sensitive,
        project_id=args.project_id,
        area_id=args.area_id,
    )
    common.print_result(todos)


def handle_get(args):
    todo = common.get_client().get_todo(args.todo_id)
    if todo is None:
        common.console.print(f"No to-do found with id {args.todo_id}", style="yellow")
        return
    common.print_result(todo)


def handle_add(args):
    """Create a to-do and print its recovered id ("unknown" if not found)."""
    client = common.get_client()
    result = client.create_todo(
        title=args.title,
        notes=args.notes,
        when=args.when,
        deadline=args.deadline,
        tags=common.split_csv(args.tags),
        checklist_items=args.checklist or None,
        project_id=args.project_id,
        area_id=args.area_id,
        heading=args.heading,
    )
    common.print_result(result)


def handle_update(args):
    changes = common.three_state_changes(
        {
            "title": args.title,
            "notes": args.notes,
            "when": args.when,
            "deadline": args.deadline,
            "tags": common.split_csv(args.tags),
            "checklist_items": args.checklist or None,
            "list_id": args.list_id,
            "heading": args.heading,
        },
        args.clear,
        UPDATABLE_FIELDS,
    )
    result = common.get_client().update_todo(args.todo_id, **changes)
    common.print_result(result)


def handle_complete(args):
    common.print_result(common.get_client().complete_todos(args.todo_ids))


def handle_uncomplete(args):
    common.print_result(common.get_client().uncomplete_todos(args.todo_ids))


def handle_cancel(args):
    common.print_result(common.get_client().cancel_todos(args.todo_ids))


def handle_delete(args):
    common.print_result(common.get_client().delete_todos(args.todo_ids))


def handle_add_checklist(args):
    result = common.get_client().add_checklist_items(args.todo_id, args.items)
    common.print_result(result)
