"""
Error types shared by the Azure DevOps and JIRA integrations.

Command handlers catch these and report them to the user; anything else
is treated as unexpected and logged with a traceback.
"""

from typing import List, Optional


class SdlcError(Exception):
    """Base class for errors reported by the CLI."""

    exit_code = 1


class ConfigurationError(SdlcError):
    """A credential, URL or other required setting is missing."""

    exit_code = 2


class TransportError(SdlcError):
    """An HTTP or SDK call to an issue tracker failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class IssueValidationError(SdlcError):
    """An issue failed field validation before it was sent."""

    def __init__(self, messages: List[str]):
        super().__init__(f"Issue validation failed: {'; '.join(messages)}")
        self.messages = list(messages)
