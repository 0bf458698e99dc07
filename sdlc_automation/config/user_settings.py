"""
CLI user settings.

Settings live in ``~/.sdlc/settings.json`` (or ``$SDLC_HOME/settings.json``)
and hold the configured organizations plus a few display preferences.
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from sdlc_automation.utils.json_utils import save_json_data


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GitHubConfig(_CamelModel):
    organization: Optional[str] = None
    base_url: Optional[str] = None
    pat_environment_variable: str = ""


class JiraOrgConfig(_CamelModel):
    base_url: Optional[str] = None
    pat_environment_variable: str = ""


class AzureDevOpsOrgConfig(_CamelModel):
    organization_url: Optional[str] = None
    default_project: Optional[str] = None
    pat_environment_variable: str = ""


class OrganizationConfig(_CamelModel):
    """An organization with its per-system connection settings."""

    name: str
    description: Optional[str] = None
    github: Optional[GitHubConfig] = Field(default=None, alias="gitHub")
    jira: Optional[JiraOrgConfig] = None
    azure_devops: Optional[AzureDevOpsOrgConfig] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class CliUserSettings(_CamelModel):
    organizations: List[OrganizationConfig] = Field(default_factory=list)
    default_organization: Optional[str] = None
    verbose_logging: bool = False
    show_timings: bool = True
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def find_organization(self, name: str) -> Optional[OrganizationConfig]:
        """Case-insensitive lookup by organization name."""
        wanted = name.lower()
        for org in self.organizations:
            if org.name.lower() == wanted:
                return org
        return None


def default_settings_dir() -> Path:
    home = os.environ.get("SDLC_HOME")
    if home:
        return Path(home)
    return Path.home() / ".sdlc"


class CliSettingsService:
    """Loads and saves CliUserSettings as JSON."""

    FILE_NAME = "settings.json"

    def __init__(self, settings_dir: Optional[Path] = None):
        self.settings_dir = Path(settings_dir) if settings_dir else default_settings_dir()
        self.logger = logging.getLogger(__name__)

    @property
    def config_path(self) -> Path:
        return self.settings_dir / self.FILE_NAME

    def load(self) -> CliUserSettings:
        """
        Load settings from disk.

        A missing file yields defaults. A corrupt file also yields defaults
        and is left untouched until the next save.
        """
        if not self.config_path.exists():
            return CliUserSettings()

        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return CliUserSettings.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            self.logger.warning(f"Settings file {self.config_path} is unreadable, using defaults: {str(e)}")
            return CliUserSettings()

    def save(self, settings: CliUserSettings) -> CliUserSettings:
        settings.updated_at = _utcnow()
        save_json_data(
            settings.model_dump(mode="json", by_alias=True),
            self.FILE_NAME,
            base_path=str(self.settings_dir),
        )
        self.logger.debug(f"Saved settings to {self.config_path}")
        return settings

    def reset(self) -> CliUserSettings:
        return self.save(CliUserSettings())

    def get_organization(self, name: str) -> Optional[OrganizationConfig]:
        return self.load().find_organization(name)

    def save_organization(self, organization: OrganizationConfig) -> OrganizationConfig:
        """Add or replace an organization, keeping the original creation time on update."""
        settings = self.load()
        existing = settings.find_organization(organization.name)
        now = _utcnow()

        if existing is not None:
            organization.created_at = existing.created_at
            settings.organizations.remove(existing)
        else:
            organization.created_at = now
        organization.updated_at = now

        settings.organizations.append(organization)
        self.save(settings)
        return organization

    def delete_organization(self, name: str) -> bool:
        settings = self.load()
        organization = settings.find_organization(name)
        if organization is None:
            return False

        settings.organizations.remove(organization)
        if settings.default_organization and settings.default_organization.lower() == name.lower():
            settings.default_organization = None
        self.save(settings)
        return True
