"""Handlers for the project commands."""
from . import common

UPDATABLE_FIELDS = ("title", "notes", "when", "deadline", "tags", "area_id")


def handle_projects(args):
    projects = common.get_client().list_projects(
        area_id=args.area_id,
        include_completed=args.include_completed,
        search_text=args.search,
        limit=args.limit,
    )
    common.print_result(projects)


def handle_get_project(args):
    project = common.get_client().get_project(args.project_id)
    if project is None:
        common.console.print(f"No project found with id {args.project_id}", style="yellow")
        return
    common.print_result(project)


def handle_add_project(args):
    result = common.get_client().create_project(
        title=args.title,
        notes=args.notes,
        when=args.when,
        deadline=args.deadline,
        tags=common.split_csv(args.tags),
        area_id=args.area_id,
        headings=args.heading or None,
    )
    common.print_result(result)


def handle_update_project(args):
    changes = common.three_state_changes(
        {
            "title": args.title,
            "notes": args.notes,
            "when": args.when,
            "deadline": args.deadline,
            "tags": common.split_csv(args.tags),
            "area_id": args.area_id,
        },
        args.clear,
        UPDATABLE_FIELDS,
    )
    common.print_result(common.get_client().update_project(args.project_id, **changes))


def handle_complete_project(args):
    common.print_result(common.get_client().complete_project(args.project_id))


def handle_delete_project(args):
    common.print_result(common.get_client().delete_projects(args.project_ids))
