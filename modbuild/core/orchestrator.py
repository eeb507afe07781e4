"""
The build orchestrator: cleans the output tree, resolves dependencies,
compiles the main, test and user module groups, and launches the test runs.

Phases run strictly in sequence. The first failure propagates out of
`build()` and no later phase is started.
"""

import logging
import time
from collections.abc import Awaitable, Callable, Iterable
from enum import Enum
from pathlib import Path

from modbuild.models.config import Artifact, BuildConfig
from modbuild.models.stats import BuildStats
from modbuild.net.downloader import Downloader
from modbuild.tools.runner import ToolRunner
from modbuild.utils.args import ArgumentList
from modbuild.utils.path import clean, find_directory_names, is_source_file

log = logging.getLogger(__name__)


class Phase(Enum):
    CLEAN = "clean"
    RESOLVE = "resolve"
    COMPILE_MAIN = "compile-main"
    COMPILE_TEST = "compile-test"
    COMPILE_USER = "compile-user"
    TEST = "test"
    DONE = "done"


BUILD_PHASES = (
    Phase.CLEAN,
    Phase.RESOLVE,
    Phase.COMPILE_MAIN,
    Phase.COMPILE_TEST,
    Phase.COMPILE_USER,
    Phase.TEST,
)
COMPILE_PHASES = (Phase.COMPILE_MAIN, Phase.COMPILE_TEST, Phase.COMPILE_USER)


class BuildOrchestrator:
    """Sequences the build phases over a configured directory layout."""

    def __init__(
        self,
        config: BuildConfig,
        runner: ToolRunner | None = None,
        downloader: Downloader | None = None,
        logger: logging.Logger | None = None,
    ):
        self.config = config
        self.runner = runner or ToolRunner(dry_run=config.dry_run)
        self.downloader = downloader or Downloader(dry_run=config.dry_run)
        self.log = logger or log
        self.stats = BuildStats(dry_run=config.dry_run)
        self.state: Phase | None = None
        self._source_file = is_source_file(config.source_extension)
        self._handlers: dict[Phase, Callable[[], Awaitable[str | None]]] = {
            Phase.CLEAN: self.clean,
            Phase.RESOLVE: self.resolve,
            Phase.COMPILE_MAIN: self.compile_main,
            Phase.COMPILE_TEST: self.compile_test,
            Phase.COMPILE_USER: self.compile_user,
            Phase.TEST: self.test,
        }

    async def build(self) -> BuildStats:
        """Runs every phase, from clean to test."""
        self.log.info("BEGIN")
        await self.run_phases(BUILD_PHASES)
        self.state = Phase.DONE
        self.log.info("END.")
        return self.stats

    async def run_phases(self, phases: Iterable[Phase]) -> BuildStats:
        """Runs the given phases in order, stopping at the first failure."""
        try:
            for phase in phases:
                await self._run_phase(phase)
        finally:
            self.stats.invocations = list(self.runner.invocations)
            await self.downloader.close()
        return self.stats

    async def _run_phase(self, phase: Phase) -> None:
        self.state = phase
        start_time = time.monotonic()
        skip_reason = await self._handlers[phase]()
        if skip_reason:
            self.log.warning(f"[yellow]Skipped {phase.value}:[/yellow] {skip_reason}")
        self.stats.record_phase(phase.value, time.monotonic() - start_time, skip_reason)

    async def clean(self) -> str | None:
        self.log.info("Clean output directories")
        if self.config.dry_run:
            return f"dry run, keeping {self.config.output_dir}"
        clean(self.config.output_dir)
        return None

    async def resolve(self) -> str | None:
        """Resolve all external dependencies."""
        self.log.info("Resolve dependencies")
        for artifact in self.config.artifacts:
            await self.resolve_artifact(artifact)
        self.stats.artifacts_downloaded = self.downloader.fetched
        self.stats.artifacts_cached = self.downloader.cached
        self.stats.bytes_downloaded = self.downloader.bytes_fetched
        return None

    async def resolve_artifact(self, artifact: Artifact) -> Path:
        """Resolve a dependency by downloading the file for the given coordinates."""
        return await self.downloader.download(artifact.uri, self.config.deps_dir)

    async def compile_main(self) -> str | None:
        self.log.info("Compile main application modules")
        config = self.config
        return await self._compile(
            config.main_source, config.main_target, [config.deps_dir]
        )

    async def compile_test(self) -> str | None:
        self.log.info("Compile test application modules")
        config = self.config
        # Each test module sees the sources of the main module it tests.
        patches = [
            f"{module}={config.main_source / module}"
            for module in find_directory_names(config.test_source)
        ]
        return await self._compile(
            config.test_source,
            config.test_target,
            [config.main_target, config.deps_dir],
            patches,
        )

    async def compile_user(self) -> str | None:
        self.log.info("Compile user-view test integration modules")
        config = self.config
        return await self._compile(
            config.user_source, config.user_target, [config.main_target, config.deps_dir]
        )

    async def _compile(
        self,
        source: Path,
        target: Path,
        module_path: list[Path],
        patches: list[str] | None = None,
    ) -> str | None:
        if not source.is_dir():
            return f"no module sources at {source}"
        args = ArgumentList()
        args.add("-d").add(target)
        args.add("--module-path").add(*module_path)
        args.add("--module-source-path").add(source)
        for patch in patches or []:
            args.add("--patch-module").add(patch)
        args.add_all(source, self._source_file)
        await self.runner.run(self.config.compiler, args)
        return None

    async def test(self) -> str | None:
        self.log.info("Launch test runs")
        config = self.config
        launched = 0
        for source, target in (
            (config.test_source, config.test_target),
            (config.user_source, config.user_target),
        ):
            # A dry run compiles nothing, so judge by the sources instead.
            present = source.is_dir() if config.dry_run else target.is_dir()
            if not present:
                self.log.warning(f"[yellow]No compiled modules at {target}[/yellow]")
                continue
            await self.run_tests(target, config.main_target, config.deps_dir)
            launched += 1
        if not launched:
            return "no compiled test modules"
        return None

    async def run_tests(self, *module_path: Path) -> int:
        """Launches the test runner, scanning `module_path` for tests."""
        config = self.config
        args = ArgumentList()
        if config.runner_logging_config:
            args.add(f"-Djava.util.logging.config.file={config.runner_logging_config}")
        args.add("--module-path").add(*module_path)
        args.add("--add-modules").add("ALL-MODULE-PATH")
        args.add("--module").add(config.launcher_module)
        args.add("--scan-module-path")
        return await self.runner.run(config.test_runner, args)
