"""
Defines the command-line interface for the application using Typer.

Running `modbuild` without a sub-command performs the full build:
clean, resolve, compile (main, test, user) and test.
"""

import asyncio
import logging
import shutil
import time
from pathlib import Path

import aiohttp
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from modbuild import __version__
from modbuild.core.orchestrator import (
    BUILD_PHASES,
    COMPILE_PHASES,
    BuildOrchestrator,
    Phase,
)
from modbuild.exceptions import ModbuildError
from modbuild.models.config import BuildConfig
from modbuild.models.stats import BuildStats
from modbuild.storage.config_manager import DEFAULT_CONFIG_FILE, ConfigManager
from modbuild.tools.registry import ToolRegistry

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_diagnostics,
    print_summary_panel,
    print_validation_table,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("modbuild")

app = typer.Typer(
    name="modbuild",
    help=(
        "Build a modular source tree: resolve dependencies, compile the main, test"
        " and user module groups, and run the tests. Run without a command to"
        " perform the full build."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Only log warnings and errors."
    ),
    config_file: Path = typer.Option(
        DEFAULT_CONFIG_FILE,
        "--config",
        "-c",
        help="Path to the INI configuration file (optional).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print the tool invocations without cleaning, downloading or running.",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the effective configuration."
    ),
):
    """modbuild: a build orchestrator for modular source trees."""
    if version:
        console.print(f"[bold]modbuild[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if quiet:
        log_level = "WARNING"
    elif verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("modbuild").setLevel(log_level)

    ctx.obj = {"config_file": config_file, "dry_run": dry_run}

    if show_config:
        try:
            config_data = ConfigManager(config_file).get_config_as_dict()
        except ModbuildError as e:
            console.print(format_error_with_suggestions(e))
            raise typer.Exit(code=1) from e
        print_config(config_file, config_data)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        _execute(ctx, BUILD_PHASES, full_build=True)


def _load_config(ctx: typer.Context) -> BuildConfig:
    options = ctx.obj or {}
    cli_options = {"dry_run": True} if options.get("dry_run") else None
    config_manager = ConfigManager(options.get("config_file", DEFAULT_CONFIG_FILE))
    return config_manager.load_config(cli_options)


def _execute(
    ctx: typer.Context, phases: tuple[Phase, ...], full_build: bool = False
) -> BuildStats:
    """Runs `phases` and prints a summary; any build error exits with status 1."""

    async def _build_async() -> BuildStats:
        config = _load_config(ctx)
        orchestrator = BuildOrchestrator(config)
        if full_build:
            return await orchestrator.build()
        return await orchestrator.run_phases(phases)

    start_time = time.monotonic()
    try:
        stats = asyncio.run(_build_async())
    except ModbuildError as e:
        console.print(format_error_with_suggestions(e))
        log.debug("Full traceback:", exc_info=True)
        raise typer.Exit(code=1) from e
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Build interrupted by user.[/yellow]")
        raise typer.Exit(code=130) from None

    print_summary_panel(stats, time.monotonic() - start_time)
    return stats


@app.command()
def build(ctx: typer.Context):
    """Clean, resolve, compile and test (the default)."""
    _execute(ctx, BUILD_PHASES, full_build=True)


@app.command()
def clean(ctx: typer.Context):
    """Delete all build output."""
    _execute(ctx, (Phase.CLEAN,))


@app.command()
def resolve(ctx: typer.Context):
    """Download the configured dependency artifacts."""
    _execute(ctx, (Phase.RESOLVE,))


@app.command(name="compile")
def compile_command(ctx: typer.Context):
    """Compile the main, test and user module groups."""
    _execute(ctx, COMPILE_PHASES)


@app.command()
def test(ctx: typer.Context):
    """Launch the test runs against the compiled modules."""
    _execute(ctx, (Phase.TEST,))


@app.command()
def init(
    ctx: typer.Context,
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration file."
    ),
):
    """Write a configuration file holding every default setting."""
    config_file: Path = (ctx.obj or {}).get("config_file", DEFAULT_CONFIG_FILE)
    if (
        config_file.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    try:
        ConfigManager(config_file).save_new_config()
    except ModbuildError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e
    console.print(f"[bold green]✓ Configuration saved to '{config_file}'[/bold green]")


@app.command()
def validate(ctx: typer.Context):
    """Validate the current configuration."""
    try:
        config = _load_config(ctx)
    except ModbuildError as e:
        console.print(f"[red]✗ Configuration is invalid: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e
    print_validation_table(config)


async def _check_repository(session: aiohttp.ClientSession, url: str) -> tuple[bool, str]:
    try:
        async with session.head(url, allow_redirects=True) as resp:
            if resp.status < 500:
                return True, f"HTTP {resp.status}"
            return False, f"HTTP {resp.status}"
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        return False, str(e) or type(e).__name__


@app.command()
def diagnose(ctx: typer.Context):
    """Diagnose common configuration, tool and connectivity issues."""
    console.print("\n[bold cyan]Running diagnostics...[/bold cyan]\n")
    checks: list[tuple[str, bool, str]] = []
    try:
        config = _load_config(ctx)
    except ModbuildError as e:
        print_diagnostics([("configuration", False, str(e))])
        raise typer.Exit(code=1) from e
    checks.append(("configuration", True, "valid"))

    registry = ToolRegistry()
    for tool in (config.compiler, config.test_runner):
        if tool in registry:
            checks.append((tool, True, "in-process provider"))
        elif executable := shutil.which(tool):
            checks.append((tool, True, executable))
        else:
            checks.append((tool, False, "not found on PATH"))

    checks.append(
        (
            str(config.main_source),
            config.main_source.is_dir(),
            "main module sources" if config.main_source.is_dir() else "missing",
        )
    )
    for root in (config.test_source, config.user_source):
        detail = "present" if root.is_dir() else "absent, phase will be skipped"
        checks.append((str(root), True, detail))

    async def _check_repositories() -> list[tuple[str, bool, str]]:
        repositories = list(dict.fromkeys(a.repository for a in config.artifacts))
        timeout = aiohttp.ClientTimeout(total=10)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            results = []
            for url in repositories:
                ok, detail = await _check_repository(session, url)
                results.append((url, ok, detail))
            return results

    console.print("[dim]Testing connectivity to artifact repositories...[/dim]")
    checks.extend(asyncio.run(_check_repositories()))

    print_diagnostics(checks)
    console.print()
    if all(passed for _, passed, _ in checks):
        console.print("[bold green]✓ All checks passed! Ready to build.[/bold green]\n")
    else:
        console.print(
            "[bold red]✗ Some issues were found. "
            "Please review the messages above.[/bold red]\n"
        )
        raise typer.Exit(code=1)
