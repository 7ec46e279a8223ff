from __future__ import annotations

import subprocess
from typing import Protocol

from .command_builder import Invocation


class ResticClientProtocol(Protocol):
    def run(self, invocation: Invocation) -> subprocess.CompletedProcess[str]:
        ...

    async def run_async(self, invocation: Invocation) -> subprocess.CompletedProcess[str]:
        ...
