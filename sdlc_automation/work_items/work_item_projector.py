"""
Work Item Projector module.

Turns a raw work item into a WorkItemModel tree. Load options choose which
relation categories to expand; ``max_depth`` bounds how many levels below the
root get expanded. With the default depth of 1 the root's children and
parents are projected once more with every expansion switched off, so the
tree is never more than two levels deep.
"""

import asyncio
import logging
from datetime import datetime
from typing import AbstractSet, Awaitable, Dict, List, Optional

from sdlc_automation.work_items.field_accessor import get_datetime, get_string, parse_datetime
from sdlc_automation.work_items.models import (
    CommitInfo,
    LoadOptions,
    PullRequestInfo,
    RawWorkItem,
    WorkItemModel,
)
from sdlc_automation.work_items.relation_extractor import (
    RelationKind,
    classify_all,
    extract_hierarchy_ids,
)
from sdlc_automation.work_items.work_item_gateway import WorkItemGateway

DEFAULT_MAX_DEPTH = 1

STRING_FIELDS = {
    "title": "System.Title",
    "description": "System.Description",
    "acceptance_criteria": "Microsoft.VSTS.Common.AcceptanceCriteria",
    "assigned_to": "System.AssignedTo",
    "work_item_type": "System.WorkItemType",
    "state": "System.State",
}

DATE_FIELDS = {
    "created_date": "System.CreatedDate",
    "changed_date": "System.ChangedDate",
    "closed_date": "Microsoft.VSTS.Common.ClosedDate",
    "resolved_date": "Microsoft.VSTS.Common.ResolvedDate",
    "activated_date": "Microsoft.VSTS.Common.ActivatedDate",
    "state_change_date": "Microsoft.VSTS.Common.StateChangeDate",
}


async def gather_all(awaitables: List[Awaitable]) -> list:
    """
    Await everything concurrently and return results in input order.

    If one fails or the caller is cancelled, the rest are cancelled too.
    """
    tasks = [asyncio.ensure_future(a) for a in awaitables]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


async def _not_requested():
    return None


def _text(value: object) -> Optional[str]:
    return value if isinstance(value, str) and value else None


class WorkItemProjector:
    """
    Projects raw Azure DevOps work items into WorkItemModel trees.
    """

    def __init__(self, gateway: WorkItemGateway):
        """
        Initialize the WorkItemProjector.

        Args:
            gateway: Source for related work items
        """
        self.gateway = gateway
        self.logger = logging.getLogger(__name__)

    async def project(
        self,
        work_item: RawWorkItem,
        options: Optional[LoadOptions] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> WorkItemModel:
        """
        Project a single work item.

        Args:
            work_item: The raw root work item, with relations
            options: Relation categories to expand (nothing by default)
            max_depth: Levels below the root to expand

        Returns:
            The fully built model. Gateway failures and cancellation
            propagate and no partial model is returned.
        """
        if max_depth < 0:
            raise ValueError("max_depth must be zero or greater")
        return await self._project(work_item, options or LoadOptions.default(), max_depth, frozenset())

    async def project_many(
        self,
        work_items: List[RawWorkItem],
        options: Optional[LoadOptions] = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> List[WorkItemModel]:
        self.logger.info(f"Projecting {len(work_items)} work items")
        return await gather_all([self.project(wi, options, max_depth) for wi in work_items])

    async def _project(
        self,
        work_item: RawWorkItem,
        options: LoadOptions,
        depth: int,
        ancestors: AbstractSet[int],
    ) -> WorkItemModel:
        if depth <= 0:
            options = LoadOptions.default()
        path = ancestors | {work_item.id}

        children, parents, commits, pull_requests = await gather_all([
            self._load_hierarchy(work_item, RelationKind.CHILD, options, depth, path)
            if options.load_children else _not_requested(),
            self._load_hierarchy(work_item, RelationKind.PARENT, options, depth, path)
            if options.load_parents else _not_requested(),
            self._load_commits(work_item) if options.load_commits else _not_requested(),
            self._load_pull_requests(work_item) if options.load_pull_requests else _not_requested(),
        ])

        return WorkItemModel(
            id=work_item.id,
            children=children,
            parents=parents,
            commits=commits,
            pull_requests=pull_requests,
            **self._scalar_fields(work_item),
        )

    def _scalar_fields(self, work_item: RawWorkItem) -> Dict[str, object]:
        values: Dict[str, object] = {}
        for attr, field_name in STRING_FIELDS.items():
            values[attr] = get_string(work_item, field_name)
        for attr, field_name in DATE_FIELDS.items():
            values[attr] = get_datetime(work_item, field_name)
        return values

    async def _load_hierarchy(
        self,
        work_item: RawWorkItem,
        kind: RelationKind,
        options: LoadOptions,
        depth: int,
        path: AbstractSet[int],
    ) -> Optional[List[WorkItemModel]]:
        ids = extract_hierarchy_ids(work_item.relations, kind)
        if not ids:
            return None

        # ids already on the path from the root would loop back
        wanted = [i for i in ids if i not in path]
        if len(wanted) < len(ids):
            self.logger.debug(f"Skipping cyclic {kind.value} links of work item {work_item.id}")
        if not wanted:
            return []

        related = await self.gateway.get_by_ids(wanted)
        self.logger.debug(f"Work item {work_item.id}: loaded {len(related)} {kind.value} work items")
        return await gather_all([self._project(r, options, depth - 1, path) for r in related])

    async def _load_commits(self, work_item: RawWorkItem) -> Optional[List[CommitInfo]]:
        links = classify_all(work_item.relations, RelationKind.COMMIT)
        if not links:
            return None

        commits = []
        for link in links:
            attributes = link.relation.attributes
            commits.append(CommitInfo(
                commit_id=link.artifact_id,
                comment=_text(attributes.get("comment")),
                author=_text(attributes.get("author")),
                commit_date=self._artifact_date(attributes),
                remote_url=link.relation.url or None,
            ))
        return commits

    async def _load_pull_requests(self, work_item: RawWorkItem) -> Optional[List[PullRequestInfo]]:
        links = classify_all(work_item.relations, RelationKind.PULL_REQUEST)
        if not links:
            return None

        pull_requests = []
        for link in links:
            attributes = link.relation.attributes
            pull_requests.append(PullRequestInfo(
                pull_request_id=link.work_item_id,
                title=_text(attributes.get("name")),
                description=_text(attributes.get("comment")),
                creation_date=self._artifact_date(attributes),
                remote_url=link.relation.url or None,
            ))
        return pull_requests

    @staticmethod
    def _artifact_date(attributes: Dict[str, object]) -> Optional[datetime]:
        return parse_datetime(attributes.get("resourceCreatedDate") or attributes.get("authorizedDate"))
