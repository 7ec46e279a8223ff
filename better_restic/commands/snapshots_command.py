from __future__ import annotations

import sys
from typing import Any

from ..core.config import AppConfig
from ..core.errors import SnapshotQueryError
from ..core.runner import BackupRunner
from .base import Command


class SnapshotsCommand(Command):
    name = "snapshots"

    def __init__(self, config: AppConfig, runner: BackupRunner) -> None:
        self._config = config
        self._runner = runner

    def run(self) -> int:
        try:
            snapshots = self._runner.snapshots(self._config.restic)
        except SnapshotQueryError as exc:
            print(f"Could not list snapshots: {exc}", file=sys.stderr)
            return 1

        print(f"Repository: {self._config.restic.repository}")
        for snapshot in snapshots:
            print(self._format(snapshot))
        print(f"{len(snapshots)} snapshot(s)")
        return 0

    def _format(self, snapshot: dict[str, Any]) -> str:
        short_id = str(snapshot.get("short_id") or str(snapshot.get("id", ""))[:8])
        when = str(snapshot.get("time", ""))[:19].replace("T", " ")
        host = snapshot.get("hostname", "")
        paths = ", ".join(str(path) for path in snapshot.get("paths") or [])
        return f"{short_id:<10} {when:<19}  {host}  {paths}"
