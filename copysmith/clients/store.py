"""Artifact persistence - run snapshots written after every phase."""

import json
import logging
from pathlib import Path
from typing import Protocol

import requests

logger = logging.getLogger(__name__)


class ArtifactStore(Protocol):
    """Receives run snapshots. Failures are the caller's to swallow."""

    def save_snapshot(self, run_id: str, snapshot: dict, project_id: str | None = None) -> None:
        ...


class JsonFileStore:
    """One directory per run; snapshot.json is overwritten after each phase."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def run_dir(self, run_id: str, project_id: str | None = None) -> Path:
        if project_id:
            return self.root / project_id / run_id
        return self.root / run_id

    def save_snapshot(self, run_id: str, snapshot: dict, project_id: str | None = None) -> None:
        path = self.run_dir(run_id, project_id)
        path.mkdir(parents=True, exist_ok=True)
        target = path / "snapshot.json"
        tmp = target.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(snapshot, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(target)

    def load_snapshot(self, run_id: str, project_id: str | None = None) -> dict | None:
        target = self.run_dir(run_id, project_id) / "snapshot.json"
        if not target.exists():
            return None
        return json.loads(target.read_text(encoding="utf-8"))


class WebhookStore:
    """POST each snapshot to an HTTP endpoint."""

    def __init__(self, url: str, api_key: str | None = None, timeout: int = 30):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    def _get_headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def save_snapshot(self, run_id: str, snapshot: dict, project_id: str | None = None) -> None:
        payload = {"run_id": run_id, "project_id": project_id, "snapshot": snapshot}
        response = requests.post(self.url, json=payload, headers=self._get_headers(), timeout=self.timeout)
        response.raise_for_status()
        logger.debug(f"Snapshot for run {run_id} posted ({response.status_code})")
