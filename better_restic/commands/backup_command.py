from __future__ import annotations

import sys

from ..core.config import AppConfig
from ..core.outcome import OutcomeCategory, format_diagnostic
from ..core.runner import BackupRunner
from .base import Command


class BackupCommand(Command):
    name = "backup"

    def __init__(
        self,
        config: AppConfig,
        runner: BackupRunner,
        *,
        dry_run: bool = False,
        verbose: bool = False,
    ) -> None:
        self._config = config
        self._runner = runner
        self._dry_run = dry_run
        self._verbose = verbose

    def run(self) -> int:
        mode = "Dry run" if self._dry_run else "Backup"
        print(f"{mode} starting")
        print(f"Repo: {self._config.restic.repository}")

        result = self._runner.backup(
            self._config,
            dry_run=self._dry_run,
            verbose=self._verbose,
        )

        if result.ok:
            if result.stdout:
                print(result.stdout, end="" if result.stdout.endswith("\n") else "\n")
            if result.category is OutcomeCategory.DRY_RUN_SUCCESS:
                print("Dry run completed. No data was written.")
            else:
                print("Backup completed successfully.")
            return 0

        print(format_diagnostic(result), file=sys.stderr)
        if result.returncode:
            return result.returncode
        return 1
