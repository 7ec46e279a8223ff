from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from ..core.config import AppConfig
from ..core.log_setup import LOG_BASENAME
from ..core.runner import BackupRunner
from .store import ConfigStore

logger = logging.getLogger(__name__)


class BackupService:
    """Operations behind the HTTP routes."""

    def __init__(
        self,
        store: ConfigStore,
        log_dir: Path,
        runner: BackupRunner | None = None,
    ) -> None:
        self._store = store
        self._log_dir = log_dir
        self._runner = runner or BackupRunner()
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def store(self) -> ConfigStore:
        return self._store

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def config_view(self) -> dict[str, Any]:
        config = await self._store.snapshot()
        return redacted_config(config)

    async def trigger(self, dry_run: bool = False) -> asyncio.Task[Any]:
        """Start a backup in the background and return without waiting for it.

        Overlapping triggers each get their own restic process; restic's
        repository locking is the only guard between them.
        """
        config = await self._store.snapshot()
        task = asyncio.create_task(
            self._run_backup(config, dry_run),
            name=f"backup{'-dry-run' if dry_run else ''}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.info("%s triggered from web UI", "Dry run backup" if dry_run else "Backup")
        return task

    async def drain(self) -> None:
        if self._tasks:
            logger.info("Waiting for %d running backup(s) to finish", len(self._tasks))
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def list_logs(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._collect_logs)

    def _collect_logs(self) -> dict[str, Any]:
        files: list[dict[str, Any]] = []
        if self._log_dir.is_dir():
            for entry in self._log_dir.iterdir():
                if not entry.name.startswith(LOG_BASENAME) or not entry.is_file():
                    continue
                try:
                    stat = entry.stat()
                except OSError:
                    continue
                files.append(
                    {
                        "name": entry.name,
                        "size": stat.st_size,
                        "modified": int(stat.st_mtime),
                    }
                )
        files.sort(key=lambda item: item["modified"], reverse=True)

        if files:
            latest = self._log_dir / files[0]["name"]
            try:
                latest_content = latest.read_text(encoding="utf-8", errors="replace")
            except OSError:
                latest_content = "Unable to read log file"
        else:
            latest_content = "No log files found"
        return {"files": files, "latest_content": latest_content}

    def status(self) -> dict[str, str]:
        return {"status": "running", "uptime": "N/A", "last_backup": "N/A"}

    async def snapshots(self) -> list[dict[str, Any]]:
        config = await self._store.snapshot()
        return await self._runner.snapshots_async(config.restic)

    async def _run_backup(self, config: AppConfig, dry_run: bool) -> None:
        try:
            await self._runner.backup_async(config, dry_run=dry_run, verbose=True)
        except Exception:
            logger.exception("Background backup crashed")


def redacted_config(config: AppConfig) -> dict[str, Any]:
    return {
        "backup": {
            "frequency": config.backup.frequency,
            "time": config.backup.time,
            "directories": [str(path) for path in config.backup.directories],
            "exclude": [str(path) for path in config.backup.exclude],
        },
        "logging": {
            "directory": str(config.logging.directory),
            "max_size": config.logging.max_size,
        },
        "restic": {
            "repository": config.restic.repository,
            "has_ssh_command": config.restic.ssh_command is not None,
            "has_password_command": config.restic.password_command is not None,
            "has_password": config.restic.password is not None,
        },
    }
