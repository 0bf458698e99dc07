"""
``sdlc settings`` commands: show and change the CLI user settings.
"""

import argparse
import json

from sdlc_automation.context import CommandContext


def register(subparsers) -> None:
    settings = subparsers.add_parser('settings', help='Manage CLI settings')
    commands = settings.add_subparsers(dest='settings_command', required=True)

    show = commands.add_parser('show', help='Print the current settings as JSON')
    show.set_defaults(handler=show_settings)

    update = commands.add_parser('set', help='Change settings')
    update.add_argument('--default-organization', help='Name of the default organization')
    update.add_argument('--verbose', dest='verbose_logging', action=argparse.BooleanOptionalAction,
                        default=None, help='Log debug output to the console')
    update.add_argument('--show-timings', action=argparse.BooleanOptionalAction, default=None,
                        help='Report how long each operation took')
    update.set_defaults(handler=set_settings)

    reset = commands.add_parser('reset', help='Restore the default settings')
    reset.set_defaults(handler=reset_settings)

    path = commands.add_parser('path', help='Print the settings file location')
    path.set_defaults(handler=show_path)


async def show_settings(args: argparse.Namespace, context: CommandContext) -> int:
    settings = context.reload_settings()
    context.console.print(json.dumps(settings.model_dump(mode="json", by_alias=True), indent=2))
    return 0


async def set_settings(args: argparse.Namespace, context: CommandContext) -> int:
    service = context.settings_service
    settings = context.reload_settings()
    changed = []

    if args.default_organization is not None:
        organization = settings.find_organization(args.default_organization)
        if organization is None:
            context.console.error(f"Organization '{args.default_organization}' not found")
            return 1
        settings.default_organization = organization.name
        changed.append(f"default organization = {organization.name}")
    if args.verbose_logging is not None:
        settings.verbose_logging = args.verbose_logging
        changed.append(f"verbose logging = {args.verbose_logging}")
    if args.show_timings is not None:
        settings.show_timings = args.show_timings
        changed.append(f"show timings = {args.show_timings}")

    if not changed:
        context.console.warning("Nothing to change")
        return 0

    service.save(settings)
    for change in changed:
        context.console.success(f"Set {change}")
    return 0


async def reset_settings(args: argparse.Namespace, context: CommandContext) -> int:
    context.settings = context.settings_service.reset()
    context.console.success("Settings reset to defaults")
    return 0


async def show_path(args: argparse.Namespace, context: CommandContext) -> int:
    context.console.print(str(context.settings_service.config_path))
    return 0
