from __future__ import annotations

import json
import logging
import subprocess
from typing import Any, cast

from .command_builder import CommandBuilder, Invocation
from .config import AppConfig, ResticConfig
from .errors import ResticSpawnError, SnapshotQueryError
from .outcome import InvocationResult, OutcomeCategory, OutcomeClassifier
from .protocols import ResticClientProtocol
from .restic_client import ResticClient

logger = logging.getLogger(__name__)


class BackupRunner:
    """Builds, runs and classifies restic invocations for both trigger surfaces."""

    def __init__(
        self,
        client: ResticClientProtocol | None = None,
        builder: CommandBuilder | None = None,
    ) -> None:
        self._client = client or ResticClient()
        self._builder = builder or CommandBuilder()

    def backup(
        self,
        config: AppConfig,
        *,
        dry_run: bool = False,
        verbose: bool = False,
    ) -> InvocationResult:
        invocation = self._build_backup(config, dry_run=dry_run, verbose=verbose)
        classifier = OutcomeClassifier(config.restic, self._builder)
        try:
            completed = self._client.run(invocation)
        except ResticSpawnError as exc:
            result = classifier.spawn_failure(invocation, exc.reason, dry_run=dry_run)
        else:
            result = classifier.classify(invocation, completed, dry_run=dry_run)
        self._log_result(result)
        return result

    async def backup_async(
        self,
        config: AppConfig,
        *,
        dry_run: bool = False,
        verbose: bool = False,
    ) -> InvocationResult:
        invocation = self._build_backup(config, dry_run=dry_run, verbose=verbose)
        classifier = OutcomeClassifier(config.restic, self._builder)
        try:
            completed = await self._client.run_async(invocation)
        except ResticSpawnError as exc:
            result = classifier.spawn_failure(invocation, exc.reason, dry_run=dry_run)
        else:
            result = classifier.classify(invocation, completed, dry_run=dry_run)
        self._log_result(result)
        return result

    def snapshots(self, restic: ResticConfig) -> list[dict[str, Any]]:
        invocation = self._builder.snapshots(restic)
        logger.debug("Listing snapshots: %s", invocation.display())
        try:
            completed = self._client.run(invocation)
        except ResticSpawnError as exc:
            raise SnapshotQueryError(str(exc)) from exc
        return self._parse_snapshots(completed)

    async def snapshots_async(self, restic: ResticConfig) -> list[dict[str, Any]]:
        invocation = self._builder.snapshots(restic)
        logger.debug("Listing snapshots: %s", invocation.display())
        try:
            completed = await self._client.run_async(invocation)
        except ResticSpawnError as exc:
            raise SnapshotQueryError(str(exc)) from exc
        return self._parse_snapshots(completed)

    def _build_backup(self, config: AppConfig, *, dry_run: bool, verbose: bool) -> Invocation:
        invocation = self._builder.backup(
            config.backup,
            config.restic,
            dry_run=dry_run,
            verbose=verbose,
        )
        logger.info(
            "Starting %sbackup of %s to %s",
            "dry-run " if dry_run else "",
            ", ".join(str(path) for path in config.backup.directories),
            config.restic.repository,
        )
        logger.info("Command: %s", invocation.display())
        return invocation

    def _parse_snapshots(self, completed: subprocess.CompletedProcess[str]) -> list[dict[str, Any]]:
        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            logger.error("restic snapshots failed (exit %s): %s", completed.returncode, stderr)
            raise SnapshotQueryError(
                stderr or f"restic snapshots exited with code {completed.returncode}"
            )
        try:
            payload = json.loads(completed.stdout or "")
        except json.JSONDecodeError as exc:
            logger.error("Failed to parse snapshots JSON: %s", exc)
            raise SnapshotQueryError(f"Could not parse restic snapshots JSON: {exc}") from exc
        if not isinstance(payload, list):
            raise SnapshotQueryError("Unexpected snapshots payload format from restic")
        return cast(list[dict[str, Any]], payload)

    def _log_result(self, result: InvocationResult) -> None:
        if result.category is OutcomeCategory.SUCCESS:
            logger.info("Backup completed successfully")
            if result.stdout.strip():
                logger.debug("restic output:\n%s", result.stdout.rstrip())
            return
        if result.category is OutcomeCategory.DRY_RUN_SUCCESS:
            logger.info("Dry run completed, no data was written")
            if result.stdout.strip():
                logger.debug("restic output:\n%s", result.stdout.rstrip())
            return

        if result.category is OutcomeCategory.SPAWN_FAILURE:
            logger.error("Could not start restic: %s", result.invocation.display())
        else:
            logger.error(
                "Backup failed (%s, exit %s): %s",
                result.category.value,
                result.returncode,
                result.detail,
            )
        for hint in result.hints:
            logger.error("%s", hint)
