from typing import List

from sdlc_automation.work_items.models import WorkItemModel


def build_jira_description(work_item: WorkItemModel) -> str:
    """
    Build the JIRA description (wiki markup) for a migrated Azure DevOps work item.

    The original description comes first, then the acceptance criteria when
    there are any, then a metadata block pointing back to the source item.
    """
    parts: List[str] = []

    if work_item.description and work_item.description.strip():
        parts.append(work_item.description)

    if work_item.acceptance_criteria and work_item.acceptance_criteria.strip():
        parts.append("")
        parts.append("h3. Acceptance Criteria")
        parts.append(work_item.acceptance_criteria)

    parts.append("")
    parts.append("----")
    parts.append(f"*Migrated from Azure DevOps Work Item:* {work_item.id}")
    parts.append(f"*Original Type:* {work_item.work_item_type or ''}")
    parts.append(f"*Original State:* {work_item.state or ''}")

    if work_item.assigned_to and work_item.assigned_to.strip():
        parts.append(f"*Originally Assigned To:* {work_item.assigned_to}")

    return "\n".join(parts)


def build_jira_summary(work_item: WorkItemModel) -> str:
    return work_item.title or f"ADO Work Item {work_item.id}"
