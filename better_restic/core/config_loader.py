from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .config import AppConfig, BackupConfig, LoggingConfig, ResticConfig
from .errors import ConfigError, SizeFormatError
from .size_parser import SizeParser

DEFAULT_CONFIG_FILE = "config.yaml"


class ConfigLoader:
    def __init__(self, default_path: Path | str = DEFAULT_CONFIG_FILE) -> None:
        self._default_path = Path(default_path)

    @property
    def default_config_file(self) -> Path:
        return self._default_path

    def load(self, config_path: str | Path | None = None) -> AppConfig:
        path = Path(config_path) if config_path else self._default_path
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Could not read config file {path}: {exc}") from exc
        return self.parse_text(text, source=str(path))

    def parse_text(self, text: str, *, source: str = "<config>") -> AppConfig:
        try:
            document = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {source}: {exc}") from exc

        if not isinstance(document, dict):
            raise ConfigError(f"{source}: top level must be a mapping")

        backup = self._section(document, "backup")
        logging_section = self._section(document, "logging")
        restic = self._section(document, "restic")

        max_size = self._required_str(logging_section, "logging", "max_size")
        try:
            SizeParser.parse_bytes(max_size)
        except SizeFormatError as exc:
            raise ConfigError(f"logging.max_size: {exc}") from exc

        return AppConfig(
            backup=BackupConfig(
                frequency=self._required_text(backup, "backup", "frequency"),
                time=self._required_text(backup, "backup", "time"),
                directories=self._path_list(backup, "backup", "directories", required=True),
                exclude=self._path_list(backup, "backup", "exclude", required=False),
            ),
            logging=LoggingConfig(
                directory=Path(self._required_str(logging_section, "logging", "directory")),
                max_size=max_size,
            ),
            restic=ResticConfig(
                repository=self._required_str(restic, "restic", "repository"),
                ssh_command=self._optional_str(restic, "restic", "ssh_command"),
                password_command=self._optional_str(restic, "restic", "password_command"),
                password=self._optional_str(restic, "restic", "password"),
            ),
        )

    def _section(self, document: dict[str, Any], name: str) -> dict[str, Any]:
        section = document.get(name)
        if section is None:
            raise ConfigError(f"Missing required config section: {name}")
        if not isinstance(section, dict):
            raise ConfigError(f"Config section {name} must be a mapping")
        return section

    def _required_str(self, section: dict[str, Any], prefix: str, key: str) -> str:
        value = section.get(key)
        if value is None or value == "":
            raise ConfigError(f"Missing required config value: {prefix}.{key}")
        if isinstance(value, (dict, list)):
            raise ConfigError(f"{prefix}.{key} must be a string")
        # Unquoted scalars such as 10 or 1.5 arrive as numbers.
        return str(value)

    def _required_text(self, section: dict[str, Any], prefix: str, key: str) -> str:
        value = section.get(key)
        if value not in (None, "") and not isinstance(value, str):
            # YAML 1.1 resolves an unquoted 12:30 to the integer 750.
            raise ConfigError(
                f"{prefix}.{key} must be a quoted string (YAML read it as {value!r})"
            )
        return self._required_str(section, prefix, key)

    def _optional_str(self, section: dict[str, Any], prefix: str, key: str) -> str | None:
        value = section.get(key)
        if value is None or value == "":
            return None
        if not isinstance(value, str):
            raise ConfigError(f"{prefix}.{key} must be a string")
        return value

    def _path_list(
        self,
        section: dict[str, Any],
        prefix: str,
        key: str,
        *,
        required: bool,
    ) -> tuple[Path, ...]:
        value = section.get(key)
        if value is None:
            if required:
                raise ConfigError(f"Missing required config value: {prefix}.{key}")
            return ()
        if not isinstance(value, list):
            raise ConfigError(f"{prefix}.{key} must be a list of paths")
        paths: list[Path] = []
        for item in value:
            if not isinstance(item, str) or not item:
                raise ConfigError(f"{prefix}.{key} entries must be non-empty strings")
            paths.append(Path(item))
        return tuple(paths)
