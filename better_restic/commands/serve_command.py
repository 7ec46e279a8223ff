from __future__ import annotations

from pathlib import Path

import uvicorn

from ..core.config import AppConfig
from ..core.runner import BackupRunner
from ..web.server import DEFAULT_HOST, DEFAULT_PORT, create_app
from ..web.service import BackupService
from ..web.store import ConfigStore
from .base import Command


class ServeCommand(Command):
    name = "serve"

    def __init__(
        self,
        config: AppConfig,
        config_path: Path,
        runner: BackupRunner,
        *,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
    ) -> None:
        self._config = config
        self._config_path = config_path
        self._runner = runner
        self._host = host
        self._port = port

    def build_service(self) -> BackupService:
        store = ConfigStore(self._config, self._config_path)
        return BackupService(store, self._config.logging.resolved_directory(), self._runner)

    def run(self) -> int:
        app = create_app(self.build_service())
        print(f"Web UI available at http://{self._host}:{self._port}", flush=True)
        print("   Press Ctrl+C to stop the server", flush=True)
        server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=self._host,
                port=self._port,
                log_level="info",
                access_log=False,
            )
        )
        server.run()
        return 0
