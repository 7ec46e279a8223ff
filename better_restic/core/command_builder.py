from __future__ import annotations

import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field

from .config import BackupConfig, ResticConfig

RESTIC_EXECUTABLE = "restic"
PASSWORD_ENV = "RESTIC_PASSWORD"
SSH_COMMAND_ENV = "RESTIC_SSH_COMMAND"


@dataclass(frozen=True)
class Invocation:
    program: str
    args: tuple[str, ...]
    env: Mapping[str, str] = field(default_factory=dict, repr=False)

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]

    def display(self) -> str:
        """Shell-style command line; env overrides are shown by name only."""
        line = shlex.join(self.argv)
        if self.env:
            line += f" [env: {', '.join(sorted(self.env))}]"
        return line


class CommandBuilder:
    def __init__(self, program: str = RESTIC_EXECUTABLE) -> None:
        self._program = program

    def backup(
        self,
        backup: BackupConfig,
        restic: ResticConfig,
        *,
        dry_run: bool = False,
        verbose: bool = False,
    ) -> Invocation:
        args = ["backup", "--repo", restic.repository]
        env = self._credentials(restic, args)
        if verbose:
            args.append("--verbose")
        args.extend(str(directory) for directory in backup.directories)
        for path in backup.exclude:
            args.extend(["--exclude", str(path)])
        if dry_run:
            args.append("--dry-run")
        return Invocation(self._program, tuple(args), env)

    def snapshots(self, restic: ResticConfig) -> Invocation:
        args = ["snapshots", "--repo", restic.repository, "--json"]
        env = self._credentials(restic, args)
        return Invocation(self._program, tuple(args), env)

    def init(self, restic: ResticConfig) -> Invocation:
        args = ["init", "--repo", restic.repository]
        env = self._credentials(restic, args)
        return Invocation(self._program, tuple(args), env)

    def _credentials(self, restic: ResticConfig, args: list[str]) -> dict[str, str]:
        env: dict[str, str] = {}
        if restic.password_command:
            args.extend(["--password-command", restic.password_command])
        elif restic.password:
            env[PASSWORD_ENV] = restic.password
        if restic.ssh_command:
            env[SSH_COMMAND_ENV] = restic.ssh_command
        return env
