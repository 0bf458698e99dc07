"""
Work item models.

RawWorkItem and Relation mirror what Azure DevOps returns. WorkItemModel and
its commit/pull request summaries are the projected, strongly typed view that
the CLI renders and the JIRA migration consumes.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

HIERARCHY_FORWARD = "System.LinkTypes.Hierarchy-Forward"
HIERARCHY_REVERSE = "System.LinkTypes.Hierarchy-Reverse"
ARTIFACT_LINK = "ArtifactLink"


class WorkItemTypes:
    """Common Azure DevOps work item type names."""

    FEATURE = "Feature"
    EPIC = "Epic"
    STORY = "User Story"
    TASK = "Task"

    _ALIASES = {
        "feature": FEATURE,
        "epic": EPIC,
        "story": STORY,
        "userstory": STORY,
        "user story": STORY,
        "task": TASK,
    }

    @classmethod
    def parse(cls, value: str) -> Optional[str]:
        """Resolve a user supplied type name, case-insensitively. Unknown names give None."""
        if not value:
            return None
        return cls._ALIASES.get(value.strip().lower())

    @classmethod
    def names(cls) -> List[str]:
        return ["Feature", "Epic", "Story", "Task"]


class Relation(BaseModel):
    model_config = ConfigDict(frozen=True)

    rel: str
    url: str = ""
    attributes: Dict[str, Any] = Field(default_factory=dict)


class RawWorkItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    fields: Dict[str, Any] = Field(default_factory=dict)
    relations: Tuple[Relation, ...] = ()
    url: str = ""

    @classmethod
    def from_sdk(cls, work_item: Any) -> "RawWorkItem":
        """Build from an azure-devops SDK WorkItem (or anything shaped like one)."""
        relations = []
        for relation in getattr(work_item, "relations", None) or []:
            relations.append(Relation(
                rel=getattr(relation, "rel", None) or "",
                url=getattr(relation, "url", None) or "",
                attributes=dict(getattr(relation, "attributes", None) or {}),
            ))
        return cls(
            id=work_item.id,
            fields=dict(getattr(work_item, "fields", None) or {}),
            relations=tuple(relations),
            url=getattr(work_item, "url", None) or "",
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RawWorkItem":
        """Build from the REST JSON shape ({"id", "fields", "relations", "url"})."""
        return cls(
            id=data["id"],
            fields=data.get("fields") or {},
            relations=tuple(Relation(
                rel=r.get("rel") or "",
                url=r.get("url") or "",
                attributes=r.get("attributes") or {},
            ) for r in data.get("relations") or []),
            url=data.get("url") or "",
        )


class LoadOptions(BaseModel):
    """Which related data to expand when projecting a work item."""

    model_config = ConfigDict(frozen=True)

    load_children: bool = False
    load_parents: bool = False
    load_commits: bool = False
    load_pull_requests: bool = False

    @classmethod
    def default(cls) -> "LoadOptions":
        return cls()

    @classmethod
    def all(cls) -> "LoadOptions":
        return cls(load_children=True, load_parents=True, load_commits=True, load_pull_requests=True)


class CommitInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    commit_id: Optional[str] = None
    comment: Optional[str] = None
    author: Optional[str] = None
    commit_date: Optional[datetime] = None
    remote_url: Optional[str] = None


class PullRequestInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    pull_request_id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    created_by: Optional[str] = None
    creation_date: Optional[datetime] = None
    closed_date: Optional[datetime] = None
    source_branch: Optional[str] = None
    target_branch: Optional[str] = None
    remote_url: Optional[str] = None


class WorkItemModel(BaseModel):
    """Simplified, projected view of an Azure DevOps work item."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: Optional[str] = None
    description: Optional[str] = None
    acceptance_criteria: Optional[str] = None
    assigned_to: Optional[str] = None
    work_item_type: Optional[str] = None
    state: Optional[str] = None
    created_date: Optional[datetime] = None
    changed_date: Optional[datetime] = None
    closed_date: Optional[datetime] = None
    resolved_date: Optional[datetime] = None
    activated_date: Optional[datetime] = None
    state_change_date: Optional[datetime] = None

    # None means "not requested"
    children: Optional[List["WorkItemModel"]] = None
    parents: Optional[List["WorkItemModel"]] = None
    commits: Optional[List[CommitInfo]] = None
    pull_requests: Optional[List[PullRequestInfo]] = None


WorkItemModel.model_rebuild()
