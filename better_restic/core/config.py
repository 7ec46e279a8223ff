from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .size_parser import SizeParser


@dataclass(frozen=True)
class BackupConfig:
    frequency: str
    time: str
    directories: tuple[Path, ...]
    exclude: tuple[Path, ...] = ()


@dataclass(frozen=True)
class LoggingConfig:
    directory: Path
    max_size: str

    @property
    def max_size_bytes(self) -> int:
        return SizeParser.parse_bytes(self.max_size)

    def resolved_directory(self) -> Path:
        return self.directory.expanduser()


@dataclass(frozen=True)
class ResticConfig:
    repository: str
    ssh_command: str | None = None
    password_command: str | None = None
    password: str | None = field(default=None, repr=False)

    @property
    def credential_mechanism(self) -> str:
        if self.password_command:
            return "password_command"
        if self.password:
            return "password"
        return "none"


@dataclass(frozen=True)
class AppConfig:
    backup: BackupConfig
    logging: LoggingConfig
    restic: ResticConfig
