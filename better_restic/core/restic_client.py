from __future__ import annotations

import asyncio
import logging
import os
import subprocess

from .command_builder import Invocation
from .errors import ResticSpawnError

logger = logging.getLogger(__name__)


class ResticClient:
    """Runs restic invocations to completion and captures their output."""

    def run(self, invocation: Invocation) -> subprocess.CompletedProcess[str]:
        argv = invocation.argv
        try:
            return subprocess.run(
                argv,
                env=self._build_env(invocation),
                text=True,
                capture_output=True,
                check=False,
            )
        except OSError as exc:
            raise ResticSpawnError(argv, exc.strerror or str(exc)) from exc

    async def run_async(self, invocation: Invocation) -> subprocess.CompletedProcess[str]:
        argv = invocation.argv
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                env=self._build_env(invocation),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ResticSpawnError(argv, exc.strerror or str(exc)) from exc

        logger.debug("Started %s (pid %s)", argv[0], process.pid)
        stdout, stderr = await process.communicate()
        return subprocess.CompletedProcess(
            argv,
            process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    def _build_env(self, invocation: Invocation) -> dict[str, str]:
        env = os.environ.copy()
        env.update(invocation.env)
        return env
