from __future__ import annotations

from argparse import Namespace
from collections.abc import Callable
from pathlib import Path

from ..core.config import LoggingConfig
from ..core.config_loader import ConfigLoader
from ..core.log_setup import log_startup_summary, setup_logging
from ..core.runner import BackupRunner
from .backup_command import BackupCommand
from .base import Command
from .serve_command import ServeCommand
from .snapshots_command import SnapshotsCommand


class CommandFactory:
    def __init__(
        self,
        *,
        config_loader: ConfigLoader | None = None,
        runner: BackupRunner | None = None,
        logging_setup: Callable[..., Path] | None = None,
    ) -> None:
        self._config_loader = config_loader or ConfigLoader()
        self._runner = runner or BackupRunner()
        self._logging_setup = logging_setup or setup_logging

    def create(self, action: str, options: Namespace) -> Command:
        config_path = Path(options.config) if options.config else self._config_loader.default_config_file
        config = self._config_loader.load(config_path)
        self._setup_logging(config.logging, action, options)
        log_startup_summary(config)

        if action == "backup":
            return BackupCommand(
                config,
                self._runner,
                dry_run=options.dry_run,
                verbose=options.verbose,
            )
        if action == "snapshots":
            return SnapshotsCommand(config, self._runner)
        if action == "serve":
            return ServeCommand(config, config_path, self._runner)
        raise SystemExit(f"Unsupported action: {action}")

    def _setup_logging(self, logging_config: LoggingConfig, action: str, options: Namespace) -> None:
        self._logging_setup(
            logging_config,
            verbose=options.verbose,
            console=action == "serve",
        )
