from unittest.mock import MagicMock, patch

import pytest
import requests

from copysmith.clients.store import JsonFileStore, WebhookStore

SNAPSHOT = {"run_id": "abc123", "status": "running", "artifacts": {}}


class TestJsonFileStore:
    def test_round_trip(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.save_snapshot("abc123", SNAPSHOT)

        assert (tmp_path / "abc123" / "snapshot.json").exists()
        assert store.load_snapshot("abc123") == SNAPSHOT

    def test_overwrites_and_groups_by_project(self, tmp_path):
        store = JsonFileStore(tmp_path)
        store.save_snapshot("abc123", SNAPSHOT, project_id="acme")
        store.save_snapshot("abc123", {**SNAPSHOT, "status": "completed"}, project_id="acme")

        assert store.load_snapshot("abc123", project_id="acme")["status"] == "completed"
        assert list((tmp_path / "acme" / "abc123").iterdir()) == [tmp_path / "acme" / "abc123" / "snapshot.json"]

    def test_missing_run(self, tmp_path):
        assert JsonFileStore(tmp_path).load_snapshot("nope") is None


class TestWebhookStore:
    @patch("copysmith.clients.store.requests.post")
    def test_posts_snapshot(self, mock_post):
        mock_post.return_value = MagicMock(status_code=200)
        WebhookStore("https://hooks.example.com/runs", api_key="k").save_snapshot("abc123", SNAPSHOT, "acme")

        _, kwargs = mock_post.call_args
        assert mock_post.call_args[0][0] == "https://hooks.example.com/runs"
        assert kwargs["json"] == {"run_id": "abc123", "project_id": "acme", "snapshot": SNAPSHOT}
        assert kwargs["headers"]["Authorization"] == "Bearer k"
        assert kwargs["timeout"] == 30

    @patch("copysmith.clients.store.requests.post")
    def test_http_errors_raise(self, mock_post):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("503")
        mock_post.return_value = response

        with pytest.raises(requests.HTTPError):
            WebhookStore("https://hooks.example.com/runs").save_snapshot("abc123", SNAPSHOT)
