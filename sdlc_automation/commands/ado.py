"""
``sdlc ado`` commands: query, show and update Azure DevOps work items.
"""

import argparse
import logging
from typing import Dict, List

from sdlc_automation.context import CommandContext
from sdlc_automation.utils.azure_client import AzureDevOpsClient
from sdlc_automation.utils.console import work_item_table, work_item_tree
from sdlc_automation.utils.json_utils import export_json
from sdlc_automation.work_items import LoadOptions, WorkItemGateway, WorkItemProjector, WorkItemTypes
from sdlc_automation.work_items.work_item_projector import DEFAULT_MAX_DEPTH

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_LIMIT = 10


def _add_connection_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--organization', help='Azure DevOps organization URL (e.g., https://dev.azure.com/your-org)')
    parser.add_argument('--project', help='Project name')
    parser.add_argument('--org', dest='org_name', help='Saved organization to take connection settings from')


def _add_load_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--load-children', action='store_true', help='Load child work items')
    parser.add_argument('--load-parents', action='store_true', help='Load parent work items')
    parser.add_argument('--load-commits', action='store_true', help='Load associated commits')
    parser.add_argument('--load-pull-requests', action='store_true', help='Load associated pull requests')
    parser.add_argument('--all', dest='load_all', action='store_true', help='Load everything above')


def non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be zero or greater, got {number}")
    return number


def load_options_from_args(args: argparse.Namespace) -> LoadOptions:
    if getattr(args, 'load_all', False):
        return LoadOptions.all()
    return LoadOptions(
        load_children=args.load_children,
        load_parents=args.load_parents,
        load_commits=args.load_commits,
        load_pull_requests=args.load_pull_requests,
    )


def parse_field_assignments(assignments: List[str]) -> Dict[str, str]:
    """Turn ["System.Title=New title", ...] into a field dict."""
    fields = {}
    for assignment in assignments:
        name, sep, value = assignment.partition('=')
        if not sep or not name.strip():
            raise ValueError(f"Invalid field assignment '{assignment}', expected Name=Value")
        fields[name.strip()] = value
    return fields


def register(subparsers) -> None:
    ado = subparsers.add_parser('ado', help='Azure DevOps operations')
    commands = ado.add_subparsers(dest='ado_command', required=True)

    query = commands.add_parser('query', help='Query work items from Azure DevOps')
    _add_connection_arguments(query)
    query.add_argument('--type', default='Feature', help='Work item type (Feature, Epic, Story, Task)')
    _add_load_arguments(query)
    query.add_argument('--limit', type=int, default=DEFAULT_DISPLAY_LIMIT, help='Rows to display')
    query.add_argument('--output', help='Write all projected work items to this JSON file')
    query.set_defaults(handler=query_work_items)

    show = commands.add_parser('show', help='Show a work item with its related items')
    _add_connection_arguments(show)
    show.add_argument('--id', type=int, required=True, dest='work_item_id', help='Work item ID')
    _add_load_arguments(show)
    show.add_argument('--max-depth', type=non_negative_int, default=DEFAULT_MAX_DEPTH,
                      help='Levels of related items to expand below the work item')
    show.add_argument('--output', help='Write the projected work item to this JSON file')
    show.set_defaults(handler=show_work_item)

    update = commands.add_parser('update', help='Update fields of a work item')
    _add_connection_arguments(update)
    update.add_argument('--id', type=int, required=True, dest='work_item_id', help='Work item ID')
    update.add_argument('--field', action='append', default=[], required=True,
                        help='Field assignment Name=Value (repeatable)')
    update.set_defaults(handler=update_work_item)


def _gateway(args: argparse.Namespace, context: CommandContext) -> WorkItemGateway:
    config = context.azure_config(args.organization, args.project, args.org_name)
    context.console.info(f"Connecting to Azure DevOps organization: {config.organization_url}")
    context.console.info(f"Project: {config.project_name}")
    return WorkItemGateway(AzureDevOpsClient(config))


async def query_work_items(args: argparse.Namespace, context: CommandContext) -> int:
    console = context.console
    work_item_type = WorkItemTypes.parse(args.type)
    if work_item_type is None:
        console.error(f"Invalid work item type: {args.type}")
        console.info(f"Valid types: {', '.join(WorkItemTypes.names())}")
        return 1

    gateway = _gateway(args, context)
    projector = WorkItemProjector(gateway)
    options = load_options_from_args(args)

    with console.timed(f"Querying {work_item_type} work items"):
        raw_items = await gateway.query_by_type(work_item_type)
        work_items = await projector.project_many(raw_items, options)
    logger.info(f"Query for {work_item_type} returned {len(work_items)} work items")

    if not work_items:
        console.warning(f"No {work_item_type} work items found.")
        return 0

    console.success(f"Found {len(work_items)} {work_item_type} work items")
    console.print(work_item_table(work_items[:args.limit], options))
    if len(work_items) > args.limit:
        console.info(f"Showing first {args.limit} of {len(work_items)} results")

    if args.output:
        path = export_json(work_items, args.output)
        console.info(f"Saved {len(work_items)} work items to {path}")
    return 0


async def show_work_item(args: argparse.Namespace, context: CommandContext) -> int:
    console = context.console
    gateway = _gateway(args, context)
    projector = WorkItemProjector(gateway)

    with console.timed(f"Loading work item {args.work_item_id}"):
        raw = await gateway.get_by_id(args.work_item_id)
        work_item = await projector.project(raw, load_options_from_args(args), max_depth=args.max_depth)

    console.print(work_item_tree(work_item))
    if args.output:
        path = export_json(work_item, args.output)
        console.info(f"Saved work item to {path}")
    return 0


async def update_work_item(args: argparse.Namespace, context: CommandContext) -> int:
    console = context.console
    try:
        fields = parse_field_assignments(args.field)
    except ValueError as e:
        console.error(str(e))
        return 1

    gateway = _gateway(args, context)
    with console.timed(f"Updating work item {args.work_item_id}"):
        updated = await gateway.update(args.work_item_id, fields)

    console.success(f"Updated work item {updated.id}: {', '.join(fields)}")
    return 0
