from __future__ import annotations

import asyncio
import logging
import subprocess
from collections.abc import Iterator
from pathlib import Path

import pytest

from better_restic.core.command_builder import Invocation
from better_restic.core.config import AppConfig, BackupConfig, LoggingConfig, ResticConfig
from better_restic.core.errors import ResticSpawnError


SAMPLE_YAML = """
backup:
  frequency: daily
  time: "02:00"
  directories:
    - {home}
    - {projects}
  exclude:
    - {home}/.cache
    - {projects}/node_modules
logging:
  directory: {logs}
  max_size: 10MB
restic:
  repository: {repo}
  password_command: pass show restic
""".lstrip()


class ResticStub:
    """Records invocations and answers with a canned process result."""

    def __init__(
        self,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        *,
        spawn_error: OSError | None = None,
    ) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.spawn_error = spawn_error
        self.invocations: list[Invocation] = []
        self.release: asyncio.Event | None = None

    def run(self, invocation: Invocation) -> subprocess.CompletedProcess[str]:
        self.invocations.append(invocation)
        return self._result(invocation)

    async def run_async(self, invocation: Invocation) -> subprocess.CompletedProcess[str]:
        self.invocations.append(invocation)
        if self.release is not None:
            await self.release.wait()
        return self._result(invocation)

    def _result(self, invocation: Invocation) -> subprocess.CompletedProcess[str]:
        if self.spawn_error is not None:
            raise ResticSpawnError(invocation.argv, str(self.spawn_error))
        return subprocess.CompletedProcess(
            invocation.argv,
            self.returncode,
            stdout=self.stdout,
            stderr=self.stderr,
        )


@pytest.fixture
def restic_config() -> ResticConfig:
    return ResticConfig(
        repository="sftp:backup@nas:/srv/restic",
        password_command="pass show restic",
    )


@pytest.fixture
def sample_config(tmp_path: Path, restic_config: ResticConfig) -> AppConfig:
    return AppConfig(
        backup=BackupConfig(
            frequency="daily",
            time="02:00",
            directories=(Path("/home/alice"), Path("/srv/projects")),
            exclude=(Path("/home/alice/.cache"), Path("/srv/projects/node_modules")),
        ),
        logging=LoggingConfig(directory=tmp_path / "logs", max_size="10MB"),
        restic=restic_config,
    )


@pytest.fixture
def sample_yaml(tmp_path: Path) -> str:
    return SAMPLE_YAML.format(
        home="/home/alice",
        projects="/srv/projects",
        logs=tmp_path / "logs",
        repo="/mnt/backup/restic",
    )


@pytest.fixture
def config_file(tmp_path: Path, sample_yaml: str) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(sample_yaml, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def reset_root_handlers() -> Iterator[None]:
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if getattr(handler, "_better_restic_handler", False):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
