"""
``sdlc org`` commands: manage the organizations stored in the user settings.
"""

import argparse
import logging

from rich.table import Table

from sdlc_automation.config.config import DEFAULT_AZURE_PAT_VARIABLE, DEFAULT_JIRA_PAT_VARIABLE
from sdlc_automation.config.user_settings import (
    AzureDevOpsOrgConfig,
    GitHubConfig,
    JiraOrgConfig,
    OrganizationConfig,
)
from sdlc_automation.context import CommandContext

logger = logging.getLogger(__name__)

DEFAULT_GITHUB_PAT_VARIABLE = "GITHUB_TOKEN"


def register(subparsers) -> None:
    org = subparsers.add_parser('org', help='Manage organizations')
    commands = org.add_subparsers(dest='org_command', required=True)

    add = commands.add_parser('add', help='Add or replace an organization')
    add.add_argument('--name', required=True, help='Organization name')
    add.add_argument('--description', help='Free text description')
    add.add_argument('--default', action='store_true', help='Make this the default organization')
    add.set_defaults(handler=add_organization)

    listing = commands.add_parser('list', help='List organizations')
    listing.set_defaults(handler=list_organizations)

    show = commands.add_parser('show', help='Show one organization')
    show.add_argument('--name', required=True, help='Organization name')
    show.set_defaults(handler=show_organization)

    remove = commands.add_parser('remove', help='Remove an organization')
    remove.add_argument('--name', required=True, help='Organization name')
    remove.set_defaults(handler=remove_organization)

    github = commands.add_parser('set-github', help='Configure GitHub for an organization')
    github.add_argument('--name', required=True, help='Organization name')
    github.add_argument('--organization', help='GitHub organization or owner')
    github.add_argument('--base-url', help='GitHub API base URL (for GitHub Enterprise)')
    github.add_argument('--pat-variable', default=DEFAULT_GITHUB_PAT_VARIABLE,
                        help='Environment variable holding the GitHub token')
    github.set_defaults(handler=set_github)

    jira = commands.add_parser('set-jira', help='Configure JIRA for an organization')
    jira.add_argument('--name', required=True, help='Organization name')
    jira.add_argument('--base-url', required=True, help='JIRA instance URL')
    jira.add_argument('--pat-variable', default=DEFAULT_JIRA_PAT_VARIABLE,
                      help='Environment variable holding the JIRA token')
    jira.set_defaults(handler=set_jira)

    ado = commands.add_parser('set-ado', help='Configure Azure DevOps for an organization')
    ado.add_argument('--name', required=True, help='Organization name')
    ado.add_argument('--organization-url', required=True, help='Azure DevOps organization URL')
    ado.add_argument('--project', help='Default project name')
    ado.add_argument('--pat-variable', default=DEFAULT_AZURE_PAT_VARIABLE,
                     help='Environment variable holding the Azure DevOps token')
    ado.set_defaults(handler=set_azure_devops)


def _require(context: CommandContext, name: str):
    organization = context.settings_service.get_organization(name)
    if organization is None:
        context.console.error(f"Organization '{name}' not found")
    return organization


async def add_organization(args: argparse.Namespace, context: CommandContext) -> int:
    service = context.settings_service
    existing = service.get_organization(args.name)
    organization = existing.model_copy() if existing else OrganizationConfig(name=args.name)
    if args.description is not None:
        organization.description = args.description

    service.save_organization(organization)
    if args.default:
        settings = service.load()
        settings.default_organization = organization.name
        service.save(settings)

    verb = "Updated" if existing else "Added"
    logger.info(f"{verb} organization {organization.name}")
    context.console.success(f"{verb} organization '{organization.name}'")
    return 0


async def list_organizations(args: argparse.Namespace, context: CommandContext) -> int:
    settings = context.reload_settings()
    if not settings.organizations:
        context.console.warning("No organizations configured. Add one with 'sdlc org add --name <name>'")
        return 0

    table = Table()
    table.add_column("Name")
    table.add_column("Default")
    table.add_column("Azure DevOps")
    table.add_column("JIRA")
    table.add_column("GitHub")
    default = (settings.default_organization or "").lower()
    for org in sorted(settings.organizations, key=lambda o: o.name.lower()):
        table.add_row(
            org.name,
            "*" if org.name.lower() == default else "",
            org.azure_devops.organization_url or "" if org.azure_devops else "",
            org.jira.base_url or "" if org.jira else "",
            org.github.organization or "" if org.github else "",
        )
    context.console.print(table)
    return 0


async def show_organization(args: argparse.Namespace, context: CommandContext) -> int:
    organization = _require(context, args.name)
    if organization is None:
        return 1

    console = context.console
    console.info(f"Organization: {organization.name}")
    if organization.description:
        console.info(f"  Description: {organization.description}")
    if organization.azure_devops:
        ado = organization.azure_devops
        console.info(f"  Azure DevOps: {ado.organization_url or '(not set)'}")
        console.info(f"    Default project: {ado.default_project or '(not set)'}")
        console.info(f"    PAT variable: {ado.pat_environment_variable or DEFAULT_AZURE_PAT_VARIABLE}")
    if organization.jira:
        console.info(f"  JIRA: {organization.jira.base_url or '(not set)'}")
        console.info(f"    PAT variable: {organization.jira.pat_environment_variable or DEFAULT_JIRA_PAT_VARIABLE}")
    if organization.github:
        console.info(f"  GitHub: {organization.github.organization or '(not set)'}")
        if organization.github.base_url:
            console.info(f"    Base URL: {organization.github.base_url}")
        console.info(f"    PAT variable: {organization.github.pat_environment_variable or DEFAULT_GITHUB_PAT_VARIABLE}")
    console.info(f"  Created: {organization.created_at.isoformat()}")
    console.info(f"  Updated: {organization.updated_at.isoformat()}")
    return 0


async def remove_organization(args: argparse.Namespace, context: CommandContext) -> int:
    if not context.settings_service.delete_organization(args.name):
        context.console.error(f"Organization '{args.name}' not found")
        return 1
    context.console.success(f"Removed organization '{args.name}'")
    return 0


async def set_github(args: argparse.Namespace, context: CommandContext) -> int:
    organization = _require(context, args.name)
    if organization is None:
        return 1
    organization.github = GitHubConfig(
        organization=args.organization,
        base_url=args.base_url,
        pat_environment_variable=args.pat_variable,
    )
    context.settings_service.save_organization(organization)
    context.console.success(f"GitHub settings saved for '{organization.name}'")
    return 0


async def set_jira(args: argparse.Namespace, context: CommandContext) -> int:
    organization = _require(context, args.name)
    if organization is None:
        return 1
    organization.jira = JiraOrgConfig(base_url=args.base_url, pat_environment_variable=args.pat_variable)
    context.settings_service.save_organization(organization)
    context.console.success(f"JIRA settings saved for '{organization.name}'")
    return 0


async def set_azure_devops(args: argparse.Namespace, context: CommandContext) -> int:
    organization = _require(context, args.name)
    if organization is None:
        return 1
    organization.azure_devops = AzureDevOpsOrgConfig(
        organization_url=args.organization_url,
        default_project=args.project,
        pat_environment_variable=args.pat_variable,
    )
    context.settings_service.save_organization(organization)
    context.console.success(f"Azure DevOps settings saved for '{organization.name}'")
    return 0
