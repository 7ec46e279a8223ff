from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import AppConfig, LoggingConfig
from .errors import LoggingSetupError

LOG_BASENAME = "restic_backup"
LOG_BACKUP_COUNT = 3
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"

_HANDLER_MARKER = "_better_restic_handler"


def log_file_path(logging_config: LoggingConfig) -> Path:
    return logging_config.resolved_directory() / f"{LOG_BASENAME}.log"


def setup_logging(
    logging_config: LoggingConfig,
    *,
    verbose: bool = False,
    console: bool = False,
) -> Path:
    log_dir = logging_config.resolved_directory()
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise LoggingSetupError(f"Could not create log directory {log_dir}: {exc}") from exc

    log_file = log_file_path(logging_config)
    try:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=logging_config.max_size_bytes,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as exc:
        raise LoggingSetupError(f"Could not open log file {log_file}: {exc}") from exc

    handlers: list[logging.Handler] = [file_handler]
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARKER, True)
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    return log_file


def log_startup_summary(config: AppConfig) -> None:
    logger = logging.getLogger("better_restic")
    logger.info("Better Restic Client starting up")
    logger.info("Backup frequency: %s", config.backup.frequency)
    logger.info("Backup time: %s", config.backup.time)
    logger.info("Backup directories: %s", [str(path) for path in config.backup.directories])
    logger.info("Exclude directories: %s", [str(path) for path in config.backup.exclude])
    logger.info("Repository: %s", config.restic.repository)
    logger.info("Credential mechanism: %s", config.restic.credential_mechanism)
    logger.info("Log directory: %s", config.logging.resolved_directory())
    logger.info("Max log size: %s", config.logging.max_size)
