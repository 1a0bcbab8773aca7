"""Handlers for the area commands."""
from . import common


def handle_areas(args):
    common.print_result(common.get_client().list_areas())


def handle_add_area(args):
    common.print_result(common.get_client().create_area(args.name))


def handle_delete_area(args):
    common.print_result(common.get_client().delete_areas(args.area_ids))
