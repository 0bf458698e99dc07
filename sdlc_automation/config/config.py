import logging
import os
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sdlc_automation.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_AZURE_PAT_VARIABLE = "AZURE_DEVOPS_PAT"
DEFAULT_JIRA_PAT_VARIABLE = "JIRA_PAT"


def load_environment() -> Optional[str]:
    """Load the nearest .env file into the process environment, if there is one."""
    dotenv_path = find_dotenv(usecwd=True)
    if dotenv_path:
        load_dotenv(dotenv_path)
        logger.debug(f"Loaded .env from: {dotenv_path}")
        return dotenv_path
    logger.debug("No .env file found")
    return None


class AzureConfig(BaseSettings):
    organization_url: str = Field("", alias="AZURE_DEVOPS_ORG_URL", description="Azure DevOps organization URL")
    project_name: str = Field("", alias="AZURE_DEVOPS_PROJECT", description="Azure DevOps project name")
    personal_access_token: str = Field("", alias="AZURE_DEVOPS_PAT", description="Azure DevOps PAT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    def validate_required(self) -> None:
        """Raise ConfigurationError for any missing value."""
        if not self.organization_url.strip():
            raise ConfigurationError("Azure DevOps organization URL is not configured (--organization or AZURE_DEVOPS_ORG_URL)")
        if not self.project_name.strip():
            raise ConfigurationError("Azure DevOps project is not configured (--project or AZURE_DEVOPS_PROJECT)")
        if not self.personal_access_token.strip():
            raise ConfigurationError("Azure DevOps Personal Access Token is not configured")


class JiraConfig(BaseSettings):
    base_url: str = Field("", alias="JIRA_BASE_URL", description="JIRA instance URL")
    personal_access_token: str = Field("", alias="JIRA_PAT", description="JIRA Personal Access Token")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    def validate_required(self) -> None:
        if not self.base_url.strip():
            raise ConfigurationError("JIRA_BASE_URL environment variable is not set")
        if not self.personal_access_token.strip():
            raise ConfigurationError("JIRA Personal Access Token is not configured (JIRA_PAT)")


def read_token(variable: Optional[str], default_variable: str) -> str:
    """Read a PAT from the named environment variable, falling back to the default name."""
    name = variable or default_variable
    token = os.environ.get(name, "").strip()
    if not token:
        raise ConfigurationError(f"Personal Access Token not found in environment variable '{name}'")
    return token
