"""SDLC automation CLI for Azure DevOps and JIRA."""

__version__ = "0.1.0"
