import os
import sys
import json
import unittest
from unittest.mock import MagicMock, patch
sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from client import ExerciseClient


def response(status_code: int = 200, body=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = body
    return resp


class ClientTest(unittest.TestCase):
    def setUp(self) -> None:
        self.client = ExerciseClient(base_url="http://testserver/", timeout=3)

    @patch("client.requests.post")
    def test_create_exercise(self, post: MagicMock) -> None:
        post.return_value = response(body={"id": "abc", "name": "Run"})
        data = self.client.create_exercise(name="Run", duration=30)
        self.assertEqual(data["id"], "abc")
        post.assert_called_once_with(
            "http://testserver/exercises",
            json={"name": "Run", "duration": 30},
            timeout=3,
        )
        post.return_value.raise_for_status.assert_called_once()

    @patch("client.requests.get")
    def test_list_exercises_passes_filters(self, get: MagicMock) -> None:
        get.return_value = response(body=[])
        self.assertEqual(self.client.list_exercises(type="running"), [])
        get.assert_called_once_with(
            "http://testserver/exercises", params={"type": "running"}, timeout=3
        )

    @patch("client.requests.get")
    def test_get_missing_exercise(self, get: MagicMock) -> None:
        get.return_value = response(404)
        self.assertIsNone(self.client.get_exercise("missing"))
        get.return_value.raise_for_status.assert_not_called()

    @patch("client.requests.put")
    def test_update_exercise(self, put: MagicMock) -> None:
        put.return_value = response(body={"id": "abc", "duration": 45})
        self.assertEqual(self.client.update_exercise("abc", duration=45)["duration"], 45)
        put.assert_called_once_with(
            "http://testserver/exercises/abc", json={"duration": 45}, timeout=3
        )

    @patch("client.requests.delete")
    def test_delete_exercise(self, delete: MagicMock) -> None:
        delete.return_value = response(body={"status": "deleted"})
        self.assertTrue(self.client.delete_exercise("abc"))
        delete.return_value = response(404)
        self.assertFalse(self.client.delete_exercise("abc"))

    @patch("client.requests.get")
    def test_stats_and_export(self, get: MagicMock) -> None:
        get.return_value = response(body={"total_workouts": 2})
        self.assertEqual(self.client.stats(), {"total_workouts": 2})
        get.return_value = response(body={"version": "1.0", "exercises": []})
        self.assertEqual(self.client.export_data()["version"], "1.0")
        self.assertEqual(get.call_args[0][0], "http://testserver/export")

    @patch("client.requests.post")
    def test_import_data(self, post: MagicMock) -> None:
        body = {"success": True, "message": "Successfully imported 1 exercises", "imported": 1}
        post.return_value = response(body=body)
        payload = {"version": "1.0", "exercises": []}
        self.assertEqual(self.client.import_data(payload), body)
        _, kwargs = post.call_args
        self.assertEqual(json.loads(kwargs["data"]), payload)
        self.assertEqual(kwargs["headers"], {"Content-Type": "application/json"})

    @patch("client.requests.post")
    def test_import_rejected(self, post: MagicMock) -> None:
        post.return_value = response(400, {"detail": "Invalid JSON format"})
        self.assertEqual(
            self.client.import_data("nope"),
            {"success": False, "message": "Invalid JSON format"},
        )
        self.assertEqual(post.call_args[1]["data"], "nope")


if __name__ == "__main__":
    unittest.main()
