import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import requests
from azure.devops.exceptions import AzureDevOpsClientRequestError

from sdlc_automation.config.config import AzureConfig
from sdlc_automation.errors import ConfigurationError, TransportError
from sdlc_automation.utils.azure_client import BATCH_SIZE, EXPAND_RELATIONS, AzureDevOpsClient
from sdlc_automation.work_items.models import HIERARCHY_FORWARD, RawWorkItem
from sdlc_automation.work_items.work_item_gateway import WorkItemGateway


def sdk_work_item(work_item_id, title=None, relations=None):
    return SimpleNamespace(
        id=work_item_id,
        fields={"System.Title": title or f"Item {work_item_id}"},
        relations=relations,
        url=f"https://dev.azure.com/org/_apis/wit/workItems/{work_item_id}",
    )


def make_config():
    return AzureConfig(
        organization_url="https://dev.azure.com/org",
        project_name="Contoso",
        personal_access_token="secret-token",
    )


class TestWorkItemGateway(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.client = MagicMock()
        self.client.get_work_item = AsyncMock()
        self.client.get_work_items_batch = AsyncMock()
        self.client.query_work_item_ids_by_type = AsyncMock()
        self.client.update_work_item = AsyncMock()
        self.gateway = WorkItemGateway(self.client)

    async def test_get_by_id_converts_relations(self):
        relation = SimpleNamespace(rel=HIERARCHY_FORWARD, url="https://x/workItems/2", attributes={"isLocked": False})
        self.client.get_work_item.return_value = sdk_work_item(1, relations=[relation])

        work_item = await self.gateway.get_by_id(1)

        self.assertEqual(work_item.id, 1)
        self.assertEqual(work_item.fields["System.Title"], "Item 1")
        self.assertEqual(len(work_item.relations), 1)
        self.assertEqual(work_item.relations[0].rel, HIERARCHY_FORWARD)
        self.assertEqual(work_item.relations[0].attributes, {"isLocked": False})

    def test_raw_work_item_from_rest_json(self):
        work_item = RawWorkItem.from_dict({
            "id": 12,
            "fields": {"System.Title": "Checkout flow"},
            "relations": [{"rel": HIERARCHY_FORWARD, "url": "https://x/workItems/13"}],
        })

        self.assertEqual(work_item.id, 12)
        self.assertEqual(work_item.relations[0].attributes, {})
        self.assertEqual(work_item.url, "")

    async def test_get_by_ids_empty_makes_no_call(self):
        self.assertEqual(await self.gateway.get_by_ids([]), [])
        self.client.get_work_items_batch.assert_not_called()

    async def test_get_by_ids_dedupes_and_skips_missing(self):
        self.client.get_work_items_batch.return_value = [sdk_work_item(3), None, sdk_work_item(1)]

        work_items = await self.gateway.get_by_ids([3, 1, 3, 7])

        self.client.get_work_items_batch.assert_awaited_once_with([3, 1, 7])
        self.assertEqual([wi.id for wi in work_items], [3, 1])

    async def test_query_by_type(self):
        self.client.query_work_item_ids_by_type.return_value = [5, 6]
        self.client.get_work_items_batch.return_value = [sdk_work_item(5), sdk_work_item(6)]

        work_items = await self.gateway.query_by_type("Feature")

        self.client.query_work_item_ids_by_type.assert_awaited_once_with("Feature")
        self.assertEqual([wi.id for wi in work_items], [5, 6])

    async def test_query_by_type_no_results(self):
        self.client.query_work_item_ids_by_type.return_value = []

        self.assertEqual(await self.gateway.query_by_type("Epic"), [])
        self.client.get_work_items_batch.assert_not_called()

    async def test_query_by_type_requires_type(self):
        with self.assertRaises(ValueError):
            await self.gateway.query_by_type("  ")

    async def test_update_requires_fields(self):
        with self.assertRaises(ValueError):
            await self.gateway.update(1, {})

    async def test_update(self):
        self.client.update_work_item.return_value = sdk_work_item(1, title="Renamed")

        work_item = await self.gateway.update(1, {"System.Title": "Renamed"})

        self.assertEqual(work_item.fields["System.Title"], "Renamed")


class TestAzureDevOpsClient(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.client = AzureDevOpsClient(make_config())
        self.sdk = MagicMock()
        self.client._work_item_client = self.sdk

    def test_requires_configuration(self):
        with self.assertRaises(ConfigurationError):
            AzureDevOpsClient(AzureConfig(organization_url="", project_name="p", personal_access_token="t"))

    async def test_batches_of_two_hundred(self):
        ids = list(range(1, 2 * BATCH_SIZE + 2))
        self.sdk.get_work_items.side_effect = lambda batch, **kwargs: [sdk_work_item(i) for i in batch]

        results = await self.client.get_work_items_batch(ids)

        self.assertEqual(len(results), len(ids))
        sizes = [len(call.args[0]) for call in self.sdk.get_work_items.call_args_list]
        self.assertEqual(sizes, [BATCH_SIZE, BATCH_SIZE, 1])
        self.assertEqual(self.sdk.get_work_items.call_args.kwargs["expand"], EXPAND_RELATIONS)
        self.assertEqual(self.sdk.get_work_items.call_args.kwargs["project"], "Contoso")
        self.assertEqual(self.sdk.get_work_items.call_args.kwargs["error_policy"], "omit")

    async def test_empty_batch_makes_no_call(self):
        self.assertEqual(await self.client.get_work_items_batch([]), [])
        self.sdk.get_work_items.assert_not_called()

    async def test_query_escapes_quotes(self):
        self.sdk.query_by_wiql.return_value = SimpleNamespace(work_items=[SimpleNamespace(id=4)])

        ids = await self.client.query_work_item_ids_by_type("User's Story")

        self.assertEqual(ids, [4])
        wiql = self.sdk.query_by_wiql.call_args.args[0]
        self.assertIn("[System.WorkItemType] = 'User''s Story'", wiql.query)

    async def test_update_builds_patch_document(self):
        self.sdk.update_work_item.return_value = sdk_work_item(9)

        await self.client.update_work_item(9, {"System.State": "Closed"})

        document = self.sdk.update_work_item.call_args.args[0]
        self.assertEqual(len(document), 1)
        self.assertEqual(document[0].op, "add")
        self.assertEqual(document[0].path, "/fields/System.State")
        self.assertEqual(document[0].value, "Closed")

    async def test_sdk_errors_become_transport_errors(self):
        self.sdk.get_work_item.side_effect = AzureDevOpsClientRequestError("TF401232: Work item 5 does not exist")

        with self.assertRaises(TransportError) as context:
            await self.client.get_work_item(5)
        self.assertIn("TF401232", str(context.exception))

    async def test_http_status_is_kept(self):
        response = requests.Response()
        response.status_code = 503
        self.sdk.get_work_items.side_effect = requests.HTTPError("Service Unavailable", response=response)

        with self.assertRaises(TransportError) as context:
            await self.client.get_work_items_batch([1])
        self.assertEqual(context.exception.status_code, 503)


if __name__ == '__main__':
    unittest.main()
