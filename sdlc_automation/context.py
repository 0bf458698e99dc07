"""
Per-invocation command context.

One CommandContext is created for each CLI run and handed to the command
handlers. It owns the execution timer, the settings service and the
settings loaded from it, so nothing is kept in module-level state.
"""

import time
from typing import Optional

from sdlc_automation.config.config import (
    DEFAULT_AZURE_PAT_VARIABLE,
    DEFAULT_JIRA_PAT_VARIABLE,
    AzureConfig,
    JiraConfig,
    read_token,
)
from sdlc_automation.config.user_settings import CliSettingsService, CliUserSettings, OrganizationConfig
from sdlc_automation.errors import ConfigurationError
from sdlc_automation.utils.console import ConsoleWriter


class CommandContext:
    def __init__(self, settings_service: Optional[CliSettingsService] = None,
                 console: Optional[ConsoleWriter] = None):
        self._started = time.perf_counter()
        self.settings_service = settings_service or CliSettingsService()
        self.settings: CliUserSettings = self.settings_service.load()
        self.console = console or ConsoleWriter(
            show_timings=self.settings.show_timings,
            total_elapsed_ms=self.elapsed_ms,
        )

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self._started) * 1000)

    def reload_settings(self) -> CliUserSettings:
        self.settings = self.settings_service.load()
        return self.settings

    def organization(self, name: Optional[str] = None) -> Optional[OrganizationConfig]:
        """The named organization, or the default one when no name is given."""
        wanted = name or self.settings.default_organization
        if not wanted:
            return None
        org = self.settings.find_organization(wanted)
        if org is None and name:
            raise ConfigurationError(f"Organization '{name}' is not configured. Add it with 'sdlc org add --name {name}'")
        return org

    def azure_config(self, organization_url: Optional[str] = None, project: Optional[str] = None,
                     org_name: Optional[str] = None) -> AzureConfig:
        """
        Resolve Azure DevOps connection settings.

        Command line values win, then the saved organization, then the
        AZURE_DEVOPS_* environment variables (or .env).
        """
        env = AzureConfig()
        org = self.organization(org_name)
        saved = org.azure_devops if org else None

        pat_variable = saved.pat_environment_variable if saved and saved.pat_environment_variable else None
        token = read_token(pat_variable, DEFAULT_AZURE_PAT_VARIABLE) if pat_variable else env.personal_access_token
        if not token:
            token = read_token(None, DEFAULT_AZURE_PAT_VARIABLE)

        config = AzureConfig(
            organization_url=organization_url or (saved.organization_url if saved else None) or env.organization_url,
            project_name=project or (saved.default_project if saved else None) or env.project_name,
            personal_access_token=token,
        )
        config.validate_required()
        return config

    def jira_config(self, org_name: Optional[str] = None) -> JiraConfig:
        env = JiraConfig()
        org = self.organization(org_name)
        saved = org.jira if org else None

        pat_variable = saved.pat_environment_variable if saved and saved.pat_environment_variable else None
        token = read_token(pat_variable, DEFAULT_JIRA_PAT_VARIABLE) if pat_variable else env.personal_access_token
        if not token:
            token = read_token(None, DEFAULT_JIRA_PAT_VARIABLE)

        config = JiraConfig(
            base_url=(saved.base_url if saved else None) or env.base_url,
            personal_access_token=token,
        )
        config.validate_required()
        return config
