from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

import better_restic.commands.serve_command as serve_module
from better_restic.commands.serve_command import ServeCommand
from better_restic.core.config import AppConfig
from better_restic.core.runner import BackupRunner
from tests.conftest import ResticStub


def test_build_service_uses_config_and_log_dir(sample_config: AppConfig, tmp_path: Path) -> None:
    command = ServeCommand(sample_config, tmp_path / "config.yaml", BackupRunner(ResticStub()))

    service = command.build_service()

    assert service.store.config_path == tmp_path / "config.yaml"
    assert asyncio.run(service.list_logs())["latest_content"] == "No log files found"


def test_run_starts_uvicorn_on_loopback(
    sample_config: AppConfig,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    observed: dict[str, Any] = {}

    class ServerStub:
        def __init__(self, config: Any) -> None:
            observed["config"] = config

        def run(self) -> None:
            observed["ran"] = True

    def config_stub(app: Any, **kwargs: Any) -> dict[str, Any]:
        return {"app": app, **kwargs}

    monkeypatch.setattr(serve_module.uvicorn, "Server", ServerStub)
    monkeypatch.setattr(serve_module.uvicorn, "Config", config_stub)

    result = ServeCommand(sample_config, tmp_path / "config.yaml", BackupRunner(ResticStub())).run()

    assert result == 0
    assert observed["ran"] is True
    assert observed["config"]["host"] == "127.0.0.1"
    assert observed["config"]["port"] == 3000
    assert "http://127.0.0.1:3000" in capsys.readouterr().out
