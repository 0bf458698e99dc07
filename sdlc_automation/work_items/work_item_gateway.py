"""
Work Item Gateway module.

Fetches raw work items from Azure DevOps, always with their relations
inline, and converts them to RawWorkItem.
"""

import logging
from typing import Any, Dict, Iterable, List

from sdlc_automation.utils.azure_client import AzureDevOpsClient
from sdlc_automation.work_items.models import RawWorkItem


class WorkItemGateway:
    """
    Batch fetch gateway over the Azure DevOps work item API.
    """

    def __init__(self, azure_client: AzureDevOpsClient):
        """
        Initialize the WorkItemGateway.

        Args:
            azure_client: The Azure DevOps client
        """
        self.client = azure_client
        self.logger = logging.getLogger(__name__)

    async def get_by_id(self, work_item_id: int) -> RawWorkItem:
        work_item = await self.client.get_work_item(work_item_id)
        return RawWorkItem.from_sdk(work_item)

    async def get_by_ids(self, work_item_ids: Iterable[int]) -> List[RawWorkItem]:
        """
        Fetch several work items at once.

        Args:
            work_item_ids: IDs to fetch; duplicates are dropped, order is kept

        Returns:
            Work items in the order the API returned them
        """
        ids = list(dict.fromkeys(int(i) for i in work_item_ids))
        if not ids:
            return []

        self.logger.debug(f"Fetching {len(ids)} related work items: {ids}")
        work_items = await self.client.get_work_items_batch(ids)
        return [RawWorkItem.from_sdk(wi) for wi in work_items if wi is not None]

    async def query_by_type(self, work_item_type: str) -> List[RawWorkItem]:
        if not work_item_type or not work_item_type.strip():
            raise ValueError("Work item type must be provided")

        ids = await self.client.query_work_item_ids_by_type(work_item_type)
        if not ids:
            self.logger.info(f"No {work_item_type} work items found")
            return []
        return await self.get_by_ids(ids)

    async def update(self, work_item_id: int, fields: Dict[str, Any]) -> RawWorkItem:
        if not fields:
            raise ValueError("At least one field must be provided for update")
        work_item = await self.client.update_work_item(work_item_id, fields)
        return RawWorkItem.from_sdk(work_item)
