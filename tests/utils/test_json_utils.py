import json
import os
import tempfile
import unittest
from datetime import datetime, timezone

from sdlc_automation.utils.json_utils import export_json, save_json_data
from sdlc_automation.work_items.models import CommitInfo, WorkItemModel


class TestJsonUtils(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_save_json_data_creates_directory(self):
        base_path = os.path.join(self.temp_dir.name, "nested", "dir")
        path = save_json_data({"when": datetime(2024, 1, 2, tzinfo=timezone.utc)}, "data.json", base_path=base_path)

        with open(path, encoding="utf-8") as f:
            self.assertEqual(json.load(f), {"when": "2024-01-02T00:00:00+00:00"})

    def test_export_models(self):
        work_item = WorkItemModel(
            id=100,
            title="Fix login bug",
            children=[WorkItemModel(id=101, title="Add login test")],
            commits=[CommitInfo(commit_id="abc123")],
        )
        output = os.path.join(self.temp_dir.name, "out", "work_items.json")

        path = export_json([work_item], output)

        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(data[0]["id"], 100)
        self.assertEqual(data[0]["children"][0]["title"], "Add login test")
        self.assertEqual(data[0]["commits"], [{"commit_id": "abc123"}])
        self.assertNotIn("parents", data[0])


if __name__ == '__main__':
    unittest.main()
