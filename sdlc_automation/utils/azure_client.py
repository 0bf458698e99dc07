from azure.devops.connection import Connection
from azure.devops.exceptions import AzureDevOpsClientRequestError
from azure.devops.v7_1.work.models import TeamContext
from azure.devops.v7_1.work_item_tracking.models import JsonPatchOperation, Wiql
from msrest.authentication import BasicAuthentication
from msrest.exceptions import AuthenticationError, ClientRequestError, HttpOperationError
import asyncio
import logging
from typing import Any, Dict, List, Optional

import requests

from sdlc_automation.config.config import AzureConfig
from sdlc_automation.errors import TransportError

# Expand flag that makes the API return relations inline
EXPAND_RELATIONS = "Relations"

# get_work_items accepts at most 200 ids per call
BATCH_SIZE = 200

# Missing or deleted ids come back as None instead of failing the batch
ERROR_POLICY_OMIT = "omit"

_TRANSPORT_ERRORS = (
    AzureDevOpsClientRequestError,
    AuthenticationError,
    ClientRequestError,
    HttpOperationError,
    requests.RequestException,
)


async def call_sdk(func, *args, description: str = "", **kwargs):
    """
    Run a blocking SDK call in a worker thread.

    Awaiting the call is a cancellation point for the surrounding task. SDK
    and HTTP failures are raised as TransportError without retrying.
    """
    try:
        return await asyncio.to_thread(func, *args, **kwargs)
    except _TRANSPORT_ERRORS as e:
        status_code = getattr(e, "status_code", None)
        if status_code is None:
            response = getattr(e, "response", None)
            status_code = getattr(response, "status_code", None)
        raise TransportError(f"Azure DevOps request failed{f' ({description})' if description else ''}: {str(e)}",
                             status_code=status_code) from e


class AzureDevOpsClient:
    def __init__(self, config: AzureConfig):
        config.validate_required()
        self.config = config
        self._connection = None
        self._work_item_client = None
        self.logger = logging.getLogger(__name__)

    @property
    def project(self) -> str:
        return self.config.project_name

    @property
    def connection(self):
        if not self._connection:
            # Log configuration details for debugging (mask the PAT)
            masked_pat = self.config.personal_access_token[:4] + "..." if self.config.personal_access_token else "None"
            self.logger.info("Connecting to Azure DevOps with:")
            self.logger.info(f"  Organization URL: {self.config.organization_url}")
            self.logger.info(f"  Project Name: {self.config.project_name}")
            self.logger.info(f"  PAT (masked): {masked_pat}")

            # Ensure organization URL is correctly formatted
            org_url = self.config.organization_url.rstrip('/')

            credentials = BasicAuthentication('', self.config.personal_access_token)
            self._connection = Connection(base_url=org_url, creds=credentials)
        return self._connection

    @property
    def work_item_client(self):
        if not self._work_item_client:
            self.logger.info("Initializing Azure DevOps Work Item Client")
            self._work_item_client = self.connection.clients.get_work_item_tracking_client()
        return self._work_item_client

    async def get_work_item(self, work_item_id: int, expand: Optional[str] = EXPAND_RELATIONS):
        """Get a work item by ID, with relations expanded by default"""
        self.logger.info(f"Retrieving work item: {work_item_id}")
        return await call_sdk(
            self.work_item_client.get_work_item,
            work_item_id,
            project=self.project,
            expand=expand,
            description=f"work item {work_item_id}",
        )

    async def get_work_items_batch(self, work_item_ids: List[int], expand: Optional[str] = EXPAND_RELATIONS) -> List:
        """
        Get work items by ID in batches of 200 (API limit).

        Args:
            work_item_ids: IDs to retrieve; an empty list makes no call
            expand: Expand option passed to the API

        Returns:
            SDK WorkItem objects in the order the API returned them, with None
            in place of ids that do not exist or cannot be read
        """
        if not work_item_ids:
            return []

        results = []
        total_batches = (len(work_item_ids) + BATCH_SIZE - 1) // BATCH_SIZE
        for i in range(0, len(work_item_ids), BATCH_SIZE):
            batch = work_item_ids[i:i + BATCH_SIZE]
            batch_num = i // BATCH_SIZE + 1
            self.logger.debug(f"Processing batch {batch_num}/{total_batches} with {len(batch)} work items")
            batch_results = await call_sdk(
                self.work_item_client.get_work_items,
                batch,
                project=self.project,
                expand=expand,
                error_policy=ERROR_POLICY_OMIT,
                description=f"batch {batch_num}/{total_batches}",
            )
            results.extend(batch_results or [])

        self.logger.info(f"Retrieved a total of {len(results)} work items")
        return results

    async def query_work_item_ids_by_type(self, work_item_type: str) -> List[int]:
        """Run a WIQL query for all work items of a type in the configured project"""
        project = self.project.replace("'", "''")
        item_type = work_item_type.replace("'", "''")
        wiql = Wiql(
            query=(
                "SELECT [System.Id] FROM WorkItems "
                f"WHERE [System.TeamProject] = '{project}' AND [System.WorkItemType] = '{item_type}' "
                "ORDER BY [System.Id]"
            )
        )
        self.logger.info(f"Executing WIQL query for {work_item_type} work items in {self.project}")
        result = await call_sdk(
            self.work_item_client.query_by_wiql,
            wiql,
            team_context=TeamContext(project=self.project),
            description=f"query {work_item_type}",
        )
        if not result or not getattr(result, "work_items", None):
            return []
        return [item.id for item in result.work_items]

    async def update_work_item(self, work_item_id: int, fields: Dict[str, Any]):
        """Apply an "add" patch operation for every field"""
        document = [
            JsonPatchOperation(op="add", path=f"/fields/{name}", value=value)
            for name, value in fields.items()
        ]
        self.logger.info(f"Updating work item {work_item_id}: {', '.join(fields)}")
        return await call_sdk(
            self.work_item_client.update_work_item,
            document,
            work_item_id,
            project=self.project,
            expand=EXPAND_RELATIONS,
            description=f"update {work_item_id}",
        )
