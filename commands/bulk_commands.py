"""Handlers for bulk moves, bulk date changes and the logbook."""
from things_api import UNSET
from things_api.errors import EncodingError

from . import common


def handle_bulk_move(args):
    """Move to-dos to a project or an area, or back to the Inbox."""
    if args.project_id and args.area_id:
        raise EncodingError("Give either --project or --area, not both")
    if not (args.project_id or args.area_id or args.inbox):
        raise EncodingError("Give a destination: --project, --area or --inbox")
    result = common.get_client().bulk_move(args.todo_ids, project_id=args.project_id, area_id=args.area_id)
    common.print_result(result)


def _date_change(value, clear):
    if clear and value is not None:
        raise EncodingError("A date cannot be both set and cleared")
    if clear:
        return None
    return UNSET if value is None else value


def handle_bulk_set_dates(args):
    when = _date_change(args.when, args.clear_when)
    deadline = _date_change(args.deadline, args.clear_deadline)
    result = common.get_client().bulk_update_dates(args.todo_ids, when=when, deadline=deadline)
    common.print_result(result)


def handle_logbook(args):
    items = common.get_client().search_logbook(
        search_text=args.search,
        from_date=args.from_date,
        to_date=args.to_date,
        limit=args.limit,
    )
    common.print_result(items)
