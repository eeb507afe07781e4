"""
Tool-provider registry.

A tool name resolves to one of two executors with the same contract,
`execute(args, stdout, stderr) -> exit code`:

- `InProcessTool` calls a registered Python provider directly.
- `ExternalTool` spawns an executable found on the search path.

Providers are registered explicitly or discovered from the `modbuild.tools`
entry-point group.
"""

import asyncio
import codecs
import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from importlib.metadata import entry_points
from typing import TextIO

from modbuild.exceptions import ConfigurationError, ProcessSpawnError

log = logging.getLogger(__name__)

ToolProvider = Callable[[TextIO, TextIO, list[str]], int | Awaitable[int]]


class Tool(ABC):
    """A named tool that can be executed with a list of arguments."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def execute(self, args: Sequence[str], stdout: TextIO, stderr: TextIO) -> int:
        """Runs the tool and returns its exit code."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class InProcessTool(Tool):
    """Runs a provider callable inside the current process."""

    def __init__(self, name: str, provider: ToolProvider):
        super().__init__(name)
        self.provider = provider

    async def execute(self, args: Sequence[str], stdout: TextIO, stderr: TextIO) -> int:
        result = self.provider(stdout, stderr, list(args))
        if inspect.isawaitable(result):
            result = await result
        return int(result)


class ExternalTool(Tool):
    """Spawns the tool as a child process and relays its combined output."""

    STREAM_READ_CHUNK_SIZE = 1024

    async def execute(self, args: Sequence[str], stdout: TextIO, stderr: TextIO) -> int:
        try:
            process = await asyncio.create_subprocess_exec(
                self.name,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise ProcessSpawnError(f"process `{self.name}` failed", e) from e

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            while chunk := await process.stdout.read(self.STREAM_READ_CHUNK_SIZE):
                stdout.write(decoder.decode(chunk))
                stdout.flush()
            stdout.write(decoder.decode(b"", final=True))
            return await process.wait()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise
        except OSError as e:
            raise ProcessSpawnError(f"process `{self.name}` failed", e) from e


class ToolRegistry:
    """Maps tool names to in-process providers, falling back to executables."""

    ENTRY_POINT_GROUP = "modbuild.tools"

    def __init__(self, load_entry_points: bool = True):
        self._providers: dict[str, ToolProvider] = {}
        self._entry_points_loaded = not load_entry_points

    def register(self, name: str, provider: ToolProvider) -> bool:
        """
        Registers an in-process provider for `name`.

        Returns False, leaving the registry unchanged, if a provider with the
        same name is already registered.
        """
        if name in self._providers:
            log.debug(f"Tool provider '{name}' already registered, ignoring.")
            return False
        self._providers[name] = provider
        return True

    def _load_entry_points(self) -> None:
        if self._entry_points_loaded:
            return
        self._entry_points_loaded = True
        for ep in entry_points(group=self.ENTRY_POINT_GROUP):
            try:
                provider = ep.load()
            except Exception as e:
                raise ConfigurationError(
                    f"loading tool provider '{ep.name}' failed", e
                ) from e
            if self.register(ep.name, provider):
                log.debug(f"Discovered tool provider '{ep.name}' ({ep.value}).")

    def find(self, name: str) -> InProcessTool | None:
        """Returns the in-process tool for `name`, or None if none is registered."""
        self._load_entry_points()
        provider = self._providers.get(name)
        return InProcessTool(name, provider) if provider else None

    def lookup(self, name: str) -> Tool:
        """Returns the in-process tool for `name`, or an external executable."""
        return self.find(name) or ExternalTool(name)

    def __contains__(self, name: str) -> bool:
        self._load_entry_points()
        return name in self._providers
