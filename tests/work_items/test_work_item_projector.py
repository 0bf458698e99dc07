import asyncio
import unittest

from sdlc_automation.errors import TransportError
from sdlc_automation.work_items.models import (
    ARTIFACT_LINK,
    HIERARCHY_FORWARD,
    HIERARCHY_REVERSE,
    LoadOptions,
    RawWorkItem,
    Relation,
)
from sdlc_automation.work_items.work_item_projector import WorkItemProjector, gather_all

BASE = "https://dev.azure.com/org/_apis/wit/workItems"


def child(work_item_id):
    return Relation(rel=HIERARCHY_FORWARD, url=f"{BASE}/{work_item_id}")


def parent(work_item_id):
    return Relation(rel=HIERARCHY_REVERSE, url=f"{BASE}/{work_item_id}")


class FakeGateway:
    """In-memory gateway that records every batch fetch."""

    def __init__(self, work_items=(), error=None):
        self.work_items = {wi.id: wi for wi in work_items}
        self.error = error
        self.calls = []

    async def get_by_ids(self, work_item_ids):
        ids = list(work_item_ids)
        self.calls.append(ids)
        if self.error is not None:
            raise self.error
        return [self.work_items[i] for i in ids if i in self.work_items]


class TestWorkItemProjector(unittest.IsolatedAsyncioTestCase):

    async def test_login_bug_scenario(self):
        root = RawWorkItem(
            id=100,
            fields={"System.Title": "Fix login bug", "System.State": "Active"},
            relations=(child(101),),
        )
        gateway = FakeGateway([RawWorkItem(id=101, fields={"System.Title": "Add login test"})])

        model = await WorkItemProjector(gateway).project(root, LoadOptions(load_children=True))

        self.assertEqual(model.id, 100)
        self.assertEqual(model.title, "Fix login bug")
        self.assertEqual(model.state, "Active")
        self.assertEqual(len(model.children), 1)
        self.assertEqual(model.children[0].id, 101)
        self.assertEqual(model.children[0].title, "Add login test")
        self.assertIsNone(model.children[0].children)
        self.assertIsNone(model.parents)
        self.assertEqual(gateway.calls, [[101]])

    async def test_default_options_expand_nothing(self):
        root = RawWorkItem(id=1, relations=(
            child(2), parent(3),
            Relation(rel=ARTIFACT_LINK, url="vstfs:///Git/Commit/p%2Fr%2Fabc"),
        ))
        gateway = FakeGateway()

        model = await WorkItemProjector(gateway).project(root)

        self.assertIsNone(model.children)
        self.assertIsNone(model.parents)
        self.assertIsNone(model.commits)
        self.assertIsNone(model.pull_requests)
        self.assertEqual(gateway.calls, [])

    async def test_all_options_stop_after_one_level(self):
        root = RawWorkItem(id=1, relations=(child(42),))
        related = RawWorkItem(id=42, relations=(child(43), parent(1)))
        gateway = FakeGateway([related, RawWorkItem(id=43)])

        model = await WorkItemProjector(gateway).project(root, LoadOptions.all())

        self.assertEqual(len(model.children), 1)
        loaded = model.children[0]
        self.assertIsNone(loaded.children)
        self.assertIsNone(loaded.parents)
        self.assertIsNone(loaded.commits)
        self.assertIsNone(loaded.pull_requests)
        self.assertEqual(gateway.calls, [[42]])

    async def test_duplicate_relations_fetch_once(self):
        root = RawWorkItem(id=1, relations=(child(5), child(5)))
        gateway = FakeGateway([RawWorkItem(id=5)])

        model = await WorkItemProjector(gateway).project(root, LoadOptions(load_children=True))

        self.assertEqual(gateway.calls, [[5]])
        self.assertEqual([c.id for c in model.children], [5])

    async def test_children_and_parents_are_batched(self):
        root = RawWorkItem(id=1, relations=(child(2), child(3), parent(9)))
        gateway = FakeGateway([RawWorkItem(id=2), RawWorkItem(id=3), RawWorkItem(id=9)])

        model = await WorkItemProjector(gateway).project(
            root, LoadOptions(load_children=True, load_parents=True))

        self.assertEqual(sorted(gateway.calls), [[2, 3], [9]])
        self.assertEqual([c.id for c in model.children], [2, 3])
        self.assertEqual([p.id for p in model.parents], [9])

    async def test_no_relations_of_requested_kind(self):
        root = RawWorkItem(id=1, relations=(parent(9),))
        gateway = FakeGateway()

        model = await WorkItemProjector(gateway).project(root, LoadOptions(load_children=True))

        self.assertIsNone(model.children)
        self.assertEqual(gateway.calls, [])

    async def test_missing_related_items_are_skipped(self):
        root = RawWorkItem(id=1, relations=(child(2), child(404)))
        gateway = FakeGateway([RawWorkItem(id=2)])

        model = await WorkItemProjector(gateway).project(root, LoadOptions(load_children=True))

        self.assertEqual([c.id for c in model.children], [2])

    async def test_deeper_expansion_with_cycle(self):
        # 1 -> 2 -> 1 would loop without the ancestor check
        root = RawWorkItem(id=1, relations=(child(2),))
        middle = RawWorkItem(id=2, relations=(child(1), child(3)))
        leaf = RawWorkItem(id=3)
        gateway = FakeGateway([root, middle, leaf])

        model = await WorkItemProjector(gateway).project(
            root, LoadOptions(load_children=True), max_depth=5)

        second = model.children[0]
        self.assertEqual(second.id, 2)
        self.assertEqual([c.id for c in second.children], [3])
        self.assertIsNone(second.children[0].children)
        self.assertEqual(gateway.calls, [[2], [3]])

    async def test_self_reference_only(self):
        root = RawWorkItem(id=1, relations=(child(1),))
        gateway = FakeGateway()

        model = await WorkItemProjector(gateway).project(root, LoadOptions(load_children=True))

        self.assertEqual(model.children, [])
        self.assertEqual(gateway.calls, [])

    async def test_zero_depth_projects_root_only(self):
        root = RawWorkItem(id=1, relations=(child(2),))
        gateway = FakeGateway([RawWorkItem(id=2)])

        model = await WorkItemProjector(gateway).project(root, LoadOptions.all(), max_depth=0)

        self.assertIsNone(model.children)
        self.assertEqual(gateway.calls, [])

    async def test_negative_depth_rejected(self):
        with self.assertRaises(ValueError):
            await WorkItemProjector(FakeGateway()).project(RawWorkItem(id=1), max_depth=-1)

    async def test_commits_and_pull_requests(self):
        root = RawWorkItem(id=1, relations=(
            Relation(rel=ARTIFACT_LINK, url="vstfs:///Git/Commit/proj%2Frepo%2Fabc123", attributes={
                "comment": "Fix null check",
                "author": "Dana Lee",
                "resourceCreatedDate": "2024-05-01T08:00:00Z",
            }),
            Relation(rel=ARTIFACT_LINK, url="vstfs:///Git/PullRequestId/proj%2Frepo%2F57", attributes={
                "name": "Pull Request",
                "authorizedDate": "2024-05-02T09:30:00Z",
            }),
        ))
        gateway = FakeGateway()

        model = await WorkItemProjector(gateway).project(
            root, LoadOptions(load_commits=True, load_pull_requests=True))

        self.assertEqual(len(model.commits), 1)
        commit = model.commits[0]
        self.assertEqual(commit.commit_id, "proj%2Frepo%2Fabc123")
        self.assertEqual(commit.comment, "Fix null check")
        self.assertEqual(commit.author, "Dana Lee")
        self.assertEqual(commit.commit_date.day, 1)

        self.assertEqual(len(model.pull_requests), 1)
        pull_request = model.pull_requests[0]
        self.assertEqual(pull_request.pull_request_id, 57)
        self.assertEqual(pull_request.title, "Pull Request")
        self.assertEqual(pull_request.creation_date.day, 2)
        self.assertEqual(gateway.calls, [])

    async def test_pull_request_from_commit_named_repository(self):
        root = RawWorkItem(id=1, relations=(
            Relation(rel=ARTIFACT_LINK, url="vstfs:///Git/PullRequestId/Contoso%2Fcommit-service%2F57"),
        ))

        model = await WorkItemProjector(FakeGateway()).project(
            root, LoadOptions(load_commits=True, load_pull_requests=True))

        self.assertIsNone(model.commits)
        self.assertEqual([pr.pull_request_id for pr in model.pull_requests], [57])

    async def test_gateway_failure_propagates(self):
        root = RawWorkItem(id=1, relations=(child(2),))
        gateway = FakeGateway(error=TransportError("Failed to get work items", status_code=500))

        with self.assertRaises(TransportError) as context:
            await WorkItemProjector(gateway).project(root, LoadOptions(load_children=True))
        self.assertEqual(context.exception.status_code, 500)

    async def test_project_many_keeps_order(self):
        items = [RawWorkItem(id=i, fields={"System.Title": f"Item {i}"}) for i in (3, 1, 2)]

        models = await WorkItemProjector(FakeGateway()).project_many(items)

        self.assertEqual([m.id for m in models], [3, 1, 2])
        self.assertEqual(models[1].title, "Item 1")


class TestGatherAll(unittest.IsolatedAsyncioTestCase):

    async def test_failure_cancels_siblings(self):
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def slow():
            started.set()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def failing():
            await started.wait()
            raise TransportError("boom")

        with self.assertRaises(TransportError):
            await gather_all([slow(), failing()])
        await asyncio.wait_for(cancelled.wait(), timeout=1)

    async def test_caller_cancellation_reaches_fetches(self):
        fetch_started = asyncio.Event()
        fetch_cancelled = asyncio.Event()

        class BlockingGateway:
            async def get_by_ids(self, work_item_ids):
                fetch_started.set()
                try:
                    await asyncio.sleep(10)
                except asyncio.CancelledError:
                    fetch_cancelled.set()
                    raise
                return []

        root = RawWorkItem(id=1, relations=(child(2),))
        task = asyncio.ensure_future(
            WorkItemProjector(BlockingGateway()).project(root, LoadOptions(load_children=True)))
        await fetch_started.wait()
        task.cancel()

        with self.assertRaises(asyncio.CancelledError):
            await task
        self.assertTrue(fetch_cancelled.is_set())


if __name__ == '__main__':
    unittest.main()
