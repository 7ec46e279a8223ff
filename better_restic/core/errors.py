from __future__ import annotations


class BetterResticError(Exception):
    """Base class for errors that stop a run before or around restic."""


class ConfigError(BetterResticError):
    pass


class SizeFormatError(BetterResticError):
    pass


class LoggingSetupError(BetterResticError):
    pass


class ResticSpawnError(BetterResticError):
    def __init__(self, argv: list[str], reason: str) -> None:
        super().__init__(f"Could not start {argv[0]}: {reason}")
        self.argv = argv
        self.reason = reason


class SnapshotQueryError(BetterResticError):
    pass
