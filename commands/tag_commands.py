"""Handlers for listing, creating and deleting tags, and for tagging items."""
from things_api.errors import EncodingError

from . import common


def handle_tags(args):
    common.print_result(common.get_client().list_tags())


def handle_add_tag(args):
    common.print_result(common.get_client().create_tag(args.name, parent_tag_id=args.parent_id))


def handle_delete_tag(args):
    common.print_result(common.get_client().delete_tags(args.names))


def _tags_from(args):
    tags = common.split_csv(args.tags)
    if not tags:
        raise EncodingError("Give at least one tag with --tags")
    return tags


def handle_tag(args):
    """Add tags to to-dos or projects, keeping the tags they already have."""
    tags = _tags_from(args)
    common.print_result(common.get_client().add_tags(args.item_ids, tags))


def handle_untag(args):
    tags = _tags_from(args)
    common.print_result(common.get_client().remove_tags(args.item_ids, tags))
