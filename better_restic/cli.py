#!/usr/bin/env python3

from __future__ import annotations

import argparse
import sys

from .commands.factory import CommandFactory
from .core.config_loader import DEFAULT_CONFIG_FILE
from .core.errors import BetterResticError


class CliApplication:
    def __init__(self, factory: CommandFactory | None = None) -> None:
        self._factory = factory or CommandFactory()

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="better-restic",
            description="Run restic backups described by a YAML config file",
        )
        parser.add_argument(
            "action",
            nargs="?",
            default="backup",
            choices=["backup", "snapshots", "serve"],
            help="What to do (default: backup)",
        )
        parser.add_argument(
            "-c",
            "--config",
            default=None,
            help=f"Path to the config file (default: {DEFAULT_CONFIG_FILE})",
        )
        parser.add_argument(
            "-n",
            "--dry-run",
            action="store_true",
            help="Pass --dry-run to restic; nothing is written to the repository",
        )
        parser.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="Debug-level logging and restic --verbose",
        )
        return parser

    def run(self, argv: list[str] | None = None) -> int:
        args = self.build_parser().parse_args(argv)
        try:
            command = self._factory.create(args.action, args)
            return command.run()
        except BetterResticError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1


def main() -> int:
    app = CliApplication()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
