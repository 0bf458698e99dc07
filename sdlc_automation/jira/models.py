"""
JIRA REST API models.

The same IssueFields model is used to create and to read issues. Validation
is explicit: ``validation_errors()`` returns a list of messages instead of raising, so
callers can report every problem before making a request.
"""

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

SUMMARY_MIN_LENGTH = 5
SUMMARY_MAX_LENGTH = 255
DESCRIPTION_MAX_LENGTH = 32767
PROJECT_KEY_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")


class _JiraModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Project(_JiraModel):
    id: Optional[str] = None
    key: Optional[str] = None
    name: Optional[str] = None

    def validate_fields(self) -> List[str]:
        if not (self.key or self.id):
            return ["Project key is required"]
        return []


class IssueType(_JiraModel):
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    subtask: Optional[bool] = None

    def validate_fields(self) -> List[str]:
        if not (self.name or self.id):
            return ["Issue type name is required"]
        return []


class User(_JiraModel):
    account_id: Optional[str] = Field(default=None, alias="accountId")
    name: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    email_address: Optional[str] = Field(default=None, alias="emailAddress")

    @property
    def label(self) -> str:
        return self.display_name or self.name or self.account_id or "(unknown)"


class Priority(_JiraModel):
    id: Optional[str] = None
    name: Optional[str] = None


class IssueFields(BaseModel):
    """Fields of a JIRA issue; unknown keys are kept as custom fields."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    project: Optional[Project] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    issue_type: Optional[IssueType] = Field(default=None, alias="issuetype")
    assignee: Optional[User] = None
    reporter: Optional[User] = None
    priority: Optional[Priority] = None
    labels: Optional[List[str]] = None

    def validation_errors(self) -> List[str]:
        messages = []
        if self.project is None:
            messages.append("Project is required")
        else:
            messages.extend(self.project.validate_fields())

        summary = self.summary or ""
        if not summary.strip():
            messages.append("Summary is required")
        elif len(summary) < SUMMARY_MIN_LENGTH:
            messages.append(f"Summary must be at least {SUMMARY_MIN_LENGTH} characters long")
        elif len(summary) > SUMMARY_MAX_LENGTH:
            messages.append(f"Summary cannot exceed {SUMMARY_MAX_LENGTH} characters")

        if self.description and len(self.description) > DESCRIPTION_MAX_LENGTH:
            messages.append(f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters")

        if self.issue_type is None:
            messages.append("Issue type is required")
        else:
            messages.extend(self.issue_type.validate_fields())
        return messages

    def is_valid(self) -> bool:
        return not self.validation_errors()

    @property
    def custom_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

    def to_payload(self) -> Dict[str, Any]:
        """Request body representation: JIRA names, nulls omitted, custom fields inlined."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Issue(_JiraModel):
    id: Optional[str] = None
    key: Optional[str] = None
    self_url: Optional[str] = Field(default=None, alias="self")
    fields: Optional[IssueFields] = None

    def validation_errors(self) -> List[str]:
        if self.fields is None:
            return ["Issue fields are required"]
        return self.fields.validation_errors()


class ErrorResponse(_JiraModel):
    error_messages: Optional[List[str]] = Field(default=None, alias="errorMessages")
    errors: Optional[Dict[str, str]] = None

    def summary(self) -> Optional[str]:
        parts = list(self.error_messages or [])
        parts.extend(f"{name}: {message}" for name, message in (self.errors or {}).items())
        return "; ".join(parts) or None


class CreateIssueCommandRequest(BaseModel):
    """Arguments of ``sdlc jira create``, validated before anything is sent."""

    project_key: str = ""
    issue_type: str = "Story"
    summary: str = ""
    description: Optional[str] = None

    def validation_errors(self) -> List[str]:
        messages = []
        if not self.project_key:
            messages.append("Project key is required")
        elif not PROJECT_KEY_PATTERN.match(self.project_key):
            messages.append(
                "Project key must start with a letter and contain only uppercase letters, numbers, and underscores"
            )

        if not self.issue_type or not self.issue_type.strip():
            messages.append("Issue type cannot be empty")

        if not self.summary.strip():
            messages.append("Summary is required")
        elif len(self.summary) < SUMMARY_MIN_LENGTH:
            messages.append(f"Summary must be at least {SUMMARY_MIN_LENGTH} characters long")
        elif len(self.summary) > SUMMARY_MAX_LENGTH:
            messages.append(f"Summary cannot exceed {SUMMARY_MAX_LENGTH} characters")

        if self.description and len(self.description) > DESCRIPTION_MAX_LENGTH:
            messages.append(f"Description cannot exceed {DESCRIPTION_MAX_LENGTH} characters")
        return messages

    def to_issue(self) -> Issue:
        return Issue(fields=IssueFields(
            project=Project(key=self.project_key),
            issue_type=IssueType(name=self.issue_type),
            summary=self.summary,
            description=self.description,
        ))
