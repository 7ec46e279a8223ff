from __future__ import annotations

import asyncio
import json
import subprocess
import time
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from better_restic.core.command_builder import Invocation
from better_restic.core.config_loader import ConfigLoader
from better_restic.core.runner import BackupRunner
from better_restic.web.server import create_app
from better_restic.web.service import BackupService
from better_restic.web.store import ConfigStore
from tests.conftest import ResticStub


class SlowRestic(ResticStub):
    def __init__(self, delay: float) -> None:
        super().__init__(returncode=0)
        self.delay = delay
        self.finished = 0

    async def run_async(self, invocation: Invocation) -> subprocess.CompletedProcess[str]:
        self.invocations.append(invocation)
        await asyncio.sleep(self.delay)
        self.finished += 1
        return subprocess.CompletedProcess(invocation.argv, 0, stdout="", stderr="")


def _client(config_file: Path, restic: ResticStub) -> TestClient:
    config = ConfigLoader().load(config_file)
    service = BackupService(
        ConfigStore(config, config_file),
        config.logging.resolved_directory(),
        BackupRunner(restic),
    )
    return TestClient(create_app(service))


@pytest.fixture
def restic() -> ResticStub:
    return ResticStub(stdout=json.dumps([{"id": "abc", "short_id": "abc"}]))


@pytest.fixture
def client(config_file: Path, restic: ResticStub) -> Iterator[TestClient]:
    with _client(config_file, restic) as test_client:
        yield test_client


def test_index_serves_ui_shell(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "Better Restic Client" in response.text


def test_get_config_is_redacted(client: TestClient) -> None:
    body = client.get("/api/config").json()

    assert body["backup"]["frequency"] == "daily"
    assert body["backup"]["exclude"] == ["/home/alice/.cache", "/srv/projects/node_modules"]
    assert body["logging"]["max_size"] == "10MB"
    assert body["restic"]["has_password_command"] is True
    assert "password_command" not in body["restic"]
    assert "pass show restic" not in json.dumps(body)


def test_get_config_yaml_returns_file(client: TestClient, sample_yaml: str) -> None:
    response = client.get("/api/config/yaml")

    assert response.status_code == 200
    assert response.text == sample_yaml


def test_update_config_yaml_persists_and_swaps(
    client: TestClient,
    config_file: Path,
    sample_yaml: str,
) -> None:
    updated = sample_yaml.replace("frequency: daily", "frequency: weekly")

    response = client.post("/api/config/yaml", json={"yaml": updated})

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Configuration updated successfully"}
    assert config_file.read_text(encoding="utf-8") == updated
    assert client.get("/api/config").json()["backup"]["frequency"] == "weekly"


def test_invalid_update_is_client_error_and_changes_nothing(
    client: TestClient,
    config_file: Path,
    sample_yaml: str,
) -> None:
    response = client.post("/api/config/yaml", json={"yaml": "backup: [broken"})

    assert response.status_code == 400
    assert "Invalid YAML" in response.json()["error"]
    assert config_file.read_text(encoding="utf-8") == sample_yaml
    assert client.get("/api/config").json()["backup"]["frequency"] == "daily"


def test_update_without_yaml_field_is_rejected(client: TestClient) -> None:
    response = client.post("/api/config/yaml", json={"text": "nope"})

    assert response.status_code == 400
    assert response.json()["error"] == "invalid request"


@pytest.mark.parametrize(
    ("body", "dry_run", "message"),
    [
        ({"dry_run": True}, True, "Dry run backup triggered"),
        ({"dry_run": False}, False, "Backup triggered"),
        ({}, False, "Backup triggered"),
        (None, False, "Backup triggered"),
    ],
)
def test_trigger_acknowledges(
    client: TestClient,
    restic: ResticStub,
    body: dict[str, bool] | None,
    dry_run: bool,
    message: str,
) -> None:
    response = client.post("/api/backup/trigger", json=body)

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": message, "dry_run": dry_run}


def test_trigger_does_not_wait_for_backup(config_file: Path) -> None:
    restic = SlowRestic(delay=1.0)

    with _client(config_file, restic) as client:
        start = time.perf_counter()
        response = client.post("/api/backup/trigger", json={"dry_run": True})
        elapsed = time.perf_counter() - start

        assert response.status_code == 200
        assert elapsed < 0.9
        assert restic.finished == 0

    assert restic.finished == 1


def test_get_logs(client: TestClient, tmp_path: Path) -> None:
    log_dir = tmp_path / "logs"
    log_dir.mkdir(exist_ok=True)
    (log_dir / "restic_backup.log").write_text("2026-10-19 02:00:00 started\n", encoding="utf-8")

    body = client.get("/api/logs").json()

    assert [item["name"] for item in body["files"]] == ["restic_backup.log"]
    assert body["latest_content"] == "2026-10-19 02:00:00 started\n"


def test_get_status(client: TestClient) -> None:
    assert client.get("/api/status").json() == {
        "status": "running",
        "uptime": "N/A",
        "last_backup": "N/A",
    }


def test_get_snapshots(client: TestClient) -> None:
    response = client.get("/api/snapshots")

    assert response.status_code == 200
    assert response.json() == {"snapshots": [{"id": "abc", "short_id": "abc"}], "count": 1}


def test_get_snapshots_failure_is_server_error(config_file: Path) -> None:
    restic = ResticStub(returncode=1, stderr="Fatal: repository not found")

    with _client(config_file, restic) as client:
        response = client.get("/api/snapshots")

    assert response.status_code == 500
    assert response.json() == {"error": "Fatal: repository not found"}

