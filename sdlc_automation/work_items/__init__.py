"""
Work Items module for SDLC Automation.

This module contains the components that fetch Azure DevOps work items and
project them, together with their hierarchy and linked artifacts, into
WorkItemModel trees.
"""

from sdlc_automation.work_items.models import (
    CommitInfo,
    LoadOptions,
    PullRequestInfo,
    RawWorkItem,
    Relation,
    WorkItemModel,
    WorkItemTypes,
)
from sdlc_automation.work_items.work_item_gateway import WorkItemGateway
from sdlc_automation.work_items.work_item_projector import WorkItemProjector

__all__ = [
    'CommitInfo',
    'LoadOptions',
    'PullRequestInfo',
    'RawWorkItem',
    'Relation',
    'WorkItemModel',
    'WorkItemTypes',
    'WorkItemGateway',
    'WorkItemProjector',
]
