"""
JIRA integration: REST client, issue models and the Azure DevOps migration description.
"""
