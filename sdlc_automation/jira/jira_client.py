"""
Client for the JIRA Data Center REST API (v2), authenticated with a
Personal Access Token sent as a Bearer token.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError
from requests.auth import AuthBase

from sdlc_automation.config.config import JiraConfig
from sdlc_automation.errors import ConfigurationError, IssueValidationError, TransportError
from sdlc_automation.jira.models import ErrorResponse, Issue, IssueFields, IssueType, Project, User

DEFAULT_TIMEOUT = 30


class BearerAuth(AuthBase):
    def __init__(self, token: str):
        self.token = token

    def __call__(self, request):
        request.headers["Authorization"] = f"Bearer {self.token}"
        return request


class JiraApiClient:
    def __init__(self, base_url: str, token: str, session: Optional[requests.Session] = None):
        if not base_url or not base_url.strip():
            raise ConfigurationError("JIRA base URL cannot be empty")
        if not token or not token.strip():
            raise ConfigurationError("JIRA token cannot be empty")

        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.session.auth = BearerAuth(token)
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json",
        })
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config: JiraConfig) -> "JiraApiClient":
        config.validate_required()
        return cls(config.base_url, config.personal_access_token)

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    async def _request(self, method: str, path: str, action: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        self.logger.debug(f"{method} {url}")
        try:
            response = await asyncio.to_thread(self.session.request, method, url, timeout=DEFAULT_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"Failed to {action}: {str(e)}") from e

        if not response.ok:
            raise TransportError(
                f"Failed to {action}. Status: {response.status_code}. Error: {self._error_message(response)}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(f"Failed to {action}: response was not JSON") from e

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            error = ErrorResponse.model_validate(response.json())
        except (ValueError, ValidationError):
            return response.text
        return error.summary() or response.text

    async def create_issue(self, issue: Issue) -> Issue:
        """
        Create an issue.

        The issue is validated first; IssueValidationError is raised without
        contacting the server when any field is invalid.
        """
        messages = issue.validation_errors()
        if messages:
            raise IssueValidationError(messages)

        payload = {"fields": issue.fields.to_payload()}
        data = await self._request("POST", "/rest/api/2/issue", "create issue", json=payload)
        created = Issue.model_validate(data)
        self.logger.info(f"Created JIRA issue {created.key}")
        return created

    async def create_issue_from(
        self,
        project_key: str,
        issue_type_name: str,
        summary: str,
        description: Optional[str] = None,
        additional_fields: Optional[Dict[str, Any]] = None,
    ) -> Issue:
        fields = IssueFields(
            project=Project(key=project_key),
            issue_type=IssueType(name=issue_type_name),
            summary=summary,
            description=description,
            **(additional_fields or {}),
        )
        return await self.create_issue(Issue(fields=fields))

    async def create_user_story(self, project_key: str, summary: str, description: Optional[str] = None,
                                additional_fields: Optional[Dict[str, Any]] = None) -> Issue:
        return await self.create_issue_from(project_key, "Story", summary, description, additional_fields)

    async def create_test_item(self, project_key: str, summary: str, description: Optional[str] = None,
                               additional_fields: Optional[Dict[str, Any]] = None) -> Issue:
        return await self.create_issue_from(project_key, "Test", summary, description, additional_fields)

    async def get_issue(self, issue_key: str) -> Issue:
        if not issue_key or not issue_key.strip():
            raise ValueError("Issue key cannot be empty")
        data = await self._request("GET", f"/rest/api/2/issue/{issue_key}", f"get issue {issue_key}")
        return Issue.model_validate(data)

    async def get_current_user(self) -> User:
        data = await self._request("GET", "/rest/api/2/myself", "get current user")
        return User.model_validate(data)
