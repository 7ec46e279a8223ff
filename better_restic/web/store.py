from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from ..core.config import AppConfig
from ..core.config_loader import ConfigLoader
from .locks import ReadWriteLock

logger = logging.getLogger(__name__)


class ConfigStore:
    """Owns the live configuration and the file it was loaded from.

    Values are immutable and replaced wholesale, so a reader keeps a
    consistent snapshot for as long as it holds the reference.
    """

    def __init__(
        self,
        config: AppConfig,
        config_path: Path,
        *,
        loader: ConfigLoader | None = None,
    ) -> None:
        self._config = config
        self._config_path = config_path
        self._loader = loader or ConfigLoader(config_path)
        self._lock = ReadWriteLock()

    @property
    def config_path(self) -> Path:
        return self._config_path

    @property
    def lock(self) -> ReadWriteLock:
        return self._lock

    async def snapshot(self) -> AppConfig:
        async with self._lock.read():
            return self._config

    async def read_text(self) -> str:
        async with self._lock.read():
            return await asyncio.to_thread(self._config_path.read_text, encoding="utf-8")

    async def replace_from_text(self, text: str) -> AppConfig:
        """Validate, persist, then swap; raises ConfigError before touching anything."""
        new_config = self._loader.parse_text(text, source="update request")
        async with self._lock.write():
            await asyncio.to_thread(self._config_path.write_text, text, encoding="utf-8")
            self._config = new_config
        logger.info("Configuration updated from web UI (%s)", self._config_path)
        return new_config
