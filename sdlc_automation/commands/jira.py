"""
``sdlc jira`` commands: create and get issues, and migrate an Azure DevOps
work item into a JIRA issue.
"""

import argparse

from sdlc_automation.commands.ado import load_options_from_args
from sdlc_automation.context import CommandContext
from sdlc_automation.jira.description import build_jira_description, build_jira_summary
from sdlc_automation.jira.jira_client import JiraApiClient
from sdlc_automation.jira.models import CreateIssueCommandRequest, Issue, IssueFields, IssueType, Project
from sdlc_automation.utils.azure_client import AzureDevOpsClient
from sdlc_automation.work_items import WorkItemGateway, WorkItemProjector


def register(subparsers) -> None:
    jira = subparsers.add_parser('jira', help='JIRA integration commands')
    jira.add_argument('--org', dest='org_name', help='Saved organization to take JIRA settings from')
    commands = jira.add_subparsers(dest='jira_command', required=True)

    create = commands.add_parser('create', help='Create a JIRA work item')
    create.add_argument('--project', required=True, help='The JIRA project key (e.g., PROJ)')
    create.add_argument('--type', default='Story', help='The issue type (Story, Test, Bug, etc.)')
    create.add_argument('--summary', required=True, help='The issue summary/title')
    create.add_argument('--description', help='The issue description')
    create.set_defaults(handler=create_issue)

    get = commands.add_parser('get', help='Show a JIRA issue')
    get.add_argument('--key', required=True, help='Issue key (e.g., PROJ-123)')
    get.set_defaults(handler=get_issue)

    migrate = commands.add_parser('ado-to-jira', help='Convert an Azure DevOps work item to a JIRA issue')
    migrate.add_argument('--ado-organization', help='Azure DevOps organization URL (e.g., https://dev.azure.com/your-org)')
    migrate.add_argument('--ado-project', help='Azure DevOps project name')
    migrate.add_argument('--work-item-id', type=int, required=True, help='Azure DevOps work item ID')
    migrate.add_argument('--jira-project', required=True, help='JIRA project key (e.g., PROJ)')
    migrate.add_argument('--jira-issue-type', default='Story', help='JIRA issue type (Story, Task, Bug, etc.)')
    migrate.set_defaults(handler=convert_ado_to_jira, load_children=False, load_parents=False,
                         load_commits=False, load_pull_requests=False)


def _report_validation(context: CommandContext, title: str, messages) -> int:
    context.console.error(title)
    for message in messages:
        context.console.error(f"  • {message}")
    return 1


async def create_issue(args: argparse.Namespace, context: CommandContext) -> int:
    console = context.console
    request = CreateIssueCommandRequest(
        project_key=args.project,
        issue_type=args.type,
        summary=args.summary,
        description=args.description,
    )
    messages = request.validation_errors()
    if messages:
        return _report_validation(context, "Validation failed:", messages)

    config = context.jira_config(args.org_name)
    console.info(f"Connecting to JIRA at: {config.base_url}")

    with JiraApiClient.from_config(config) as client:
        with console.timed(f"Creating {args.type} in project {args.project}"):
            created = await client.create_issue(request.to_issue())

    console.success(f"Created {args.type}: {created.key}")
    if created.self_url:
        console.info(f"URL: {created.self_url}")
    return 0


async def get_issue(args: argparse.Namespace, context: CommandContext) -> int:
    console = context.console
    config = context.jira_config(args.org_name)

    with JiraApiClient.from_config(config) as client:
        with console.timed(f"Loading {args.key}"):
            issue = await client.get_issue(args.key)

    fields = issue.fields or IssueFields()
    console.success(f"{issue.key}: {fields.summary or '(no summary)'}")
    console.info(f"  Type: {fields.issue_type.name if fields.issue_type else '(unknown)'}")
    console.info(f"  Assignee: {fields.assignee.label if fields.assignee else '(unassigned)'}")
    console.info(f"  Reporter: {fields.reporter.label if fields.reporter else '(unknown)'}")
    if fields.description:
        console.print(fields.description)
    return 0


async def convert_ado_to_jira(args: argparse.Namespace, context: CommandContext) -> int:
    console = context.console
    jira_config = context.jira_config(args.org_name)
    azure_config = context.azure_config(args.ado_organization, args.ado_project, args.org_name)

    console.info(f"Connecting to Azure DevOps: {azure_config.organization_url}")
    console.info(f"Project: {azure_config.project_name}")
    gateway = WorkItemGateway(AzureDevOpsClient(azure_config))
    projector = WorkItemProjector(gateway)

    with console.timed(f"Fetching work item {args.work_item_id}"):
        raw = await gateway.get_by_id(args.work_item_id)
        work_item = await projector.project(raw, load_options_from_args(args))

    console.success(f"Retrieved work item: {work_item.title}")
    console.info(f"  Type: {work_item.work_item_type}")
    console.info(f"  State: {work_item.state}")
    console.info(f"  Assigned To: {work_item.assigned_to or '(unassigned)'}")

    console.info(f"Connecting to JIRA at: {jira_config.base_url}")
    with JiraApiClient.from_config(jira_config) as client:
        console.info("Getting current JIRA user...")
        current_user = await client.get_current_user()
        console.info(f"  Current user: {current_user.label}")

        issue = Issue(fields=IssueFields(
            project=Project(key=args.jira_project),
            issue_type=IssueType(name=args.jira_issue_type),
            summary=build_jira_summary(work_item),
            description=build_jira_description(work_item),
            reporter=current_user,
            assignee=current_user,
        ))
        messages = issue.validation_errors()
        if messages:
            return _report_validation(context, "JIRA issue validation failed:", messages)

        with console.timed(f"Creating JIRA {args.jira_issue_type} in project {args.jira_project}"):
            created = await client.create_issue(issue)

    console.success(f"Created JIRA issue: {created.key}")
    if created.self_url:
        console.info(f"  URL: {created.self_url}")
    console.info(f"  Assignee: {current_user.label}")
    console.info(f"  Reporter: {current_user.label}")
    return 0
