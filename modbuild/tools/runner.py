"""
Runs compiler and test-runner tools and turns nonzero exit codes into errors.
"""

import logging
import sys
import time
from collections.abc import Iterable
from typing import Any, TextIO

from modbuild.exceptions import ToolFailedError
from modbuild.models.stats import ToolInvocation
from modbuild.utils.formatting import format_command

from .registry import ToolRegistry

log = logging.getLogger(__name__)


class ToolRunner:
    """Runs an internal or external tool with the supplied arguments."""

    def __init__(
        self,
        registry: ToolRegistry | None = None,
        dry_run: bool = False,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ):
        self.registry = registry or ToolRegistry()
        self.dry_run = dry_run
        self.stdout = stdout
        self.stderr = stderr
        self.invocations: list[ToolInvocation] = []

    async def run(self, name: str, args: Iterable[Any]) -> int:
        """
        Echoes and executes the tool `name`.

        Raises:
            ToolFailedError: If the tool exits with a nonzero result code.
            ProcessSpawnError: If an external tool cannot be started.
        """
        strings = [str(arg) for arg in args]
        stdout = self.stdout or sys.stdout
        stderr = self.stderr or sys.stderr
        print(format_command(name, strings), file=stdout, flush=True)

        if self.dry_run:
            self.invocations.append(ToolInvocation(name=name, args=strings, result=0))
            return 0

        tool = self.registry.lookup(name)
        log.debug(f"Resolved tool '{name}' to {tool!r}")
        start_time = time.monotonic()
        result = await tool.execute(strings, stdout, stderr)
        self.invocations.append(
            ToolInvocation(
                name=name,
                args=strings,
                result=result,
                duration_seconds=time.monotonic() - start_time,
            )
        )
        if result != 0:
            raise ToolFailedError(name, result)
        return result
