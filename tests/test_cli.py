"""Tests for the command-line interface."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from modbuild import __version__
from modbuild.cli.app import app
from modbuild.core.orchestrator import COMPILE_PHASES, Phase
from modbuild.exceptions import DownloadError, ToolFailedError
from modbuild.models.config import BuildConfig
from modbuild.models.stats import BuildStats

runner = CliRunner()


def mock_orchestrator(mock_cls: MagicMock, **async_methods) -> MagicMock:
    instance = mock_cls.return_value
    instance.build = AsyncMock(return_value=BuildStats())
    instance.run_phases = AsyncMock(return_value=BuildStats())
    for name, value in async_methods.items():
        setattr(instance, name, value)
    return instance


class TestMainCommand:
    """Test the default full build."""

    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    @patch("modbuild.cli.app.BuildOrchestrator")
    def test_no_command_runs_full_build(self, mock_cls: MagicMock, workdir: Path) -> None:
        """Test running without arguments performs the whole build."""
        instance = mock_orchestrator(mock_cls)

        result = runner.invoke(app, [])

        assert result.exit_code == 0, result.output
        instance.build.assert_awaited_once()
        config = mock_cls.call_args.args[0]
        assert isinstance(config, BuildConfig)
        assert not config.dry_run

    @patch("modbuild.cli.app.BuildOrchestrator")
    def test_tool_failure_exits_nonzero(self, mock_cls: MagicMock, workdir: Path) -> None:
        """Test a failing tool is reported and the exit status is 1."""
        mock_orchestrator(
            mock_cls, build=AsyncMock(side_effect=ToolFailedError("javac", 2))
        )

        result = runner.invoke(app, [])

        assert result.exit_code == 1
        assert "javac failed with error code 2" in result.output

    @patch("modbuild.cli.app.BuildOrchestrator")
    def test_download_failure_exits_nonzero(
        self, mock_cls: MagicMock, workdir: Path
    ) -> None:
        mock_orchestrator(
            mock_cls,
            build=AsyncMock(side_effect=DownloadError("download failed for: http://x/a.jar")),
        )
        result = runner.invoke(app, ["build"])
        assert result.exit_code == 1
        assert "DownloadError" in result.output

    @patch("modbuild.cli.app.BuildOrchestrator")
    def test_dry_run_flag(self, mock_cls: MagicMock, workdir: Path) -> None:
        mock_orchestrator(mock_cls)
        result = runner.invoke(app, ["--dry-run"])
        assert result.exit_code == 0, result.output
        assert mock_cls.call_args.args[0].dry_run

    @patch("modbuild.cli.app.BuildOrchestrator")
    def test_config_file_option(self, mock_cls: MagicMock, workdir: Path) -> None:
        """Test an explicit configuration file is used."""
        mock_orchestrator(mock_cls)
        (workdir / "custom.ini").write_text("[DEFAULT]\ncompiler = ecj\n")
        result = runner.invoke(app, ["--config", "custom.ini", "build"])
        assert result.exit_code == 0, result.output
        assert mock_cls.call_args.args[0].compiler == "ecj"

    def test_invalid_config_exits_nonzero(self, workdir: Path) -> None:
        (workdir / "modbuild.ini").write_text("[DEFAULT]\nsource_extension = java\n")
        result = runner.invoke(app, [])
        assert result.exit_code == 1
        assert "ConfigurationError" in result.output


class TestPhaseCommands:
    """Test single-phase sub-commands."""

    @patch("modbuild.cli.app.BuildOrchestrator")
    def test_compile(self, mock_cls: MagicMock, workdir: Path) -> None:
        instance = mock_orchestrator(mock_cls)
        result = runner.invoke(app, ["compile"])
        assert result.exit_code == 0, result.output
        instance.run_phases.assert_awaited_once_with(COMPILE_PHASES)
        instance.build.assert_not_awaited()

    @patch("modbuild.cli.app.BuildOrchestrator")
    def test_clean_resolve_test(self, mock_cls: MagicMock, workdir: Path) -> None:
        instance = mock_orchestrator(mock_cls)
        for command, phase in (
            ("clean", Phase.CLEAN),
            ("resolve", Phase.RESOLVE),
            ("test", Phase.TEST),
        ):
            result = runner.invoke(app, [command])
            assert result.exit_code == 0, result.output
            assert instance.run_phases.await_args.args[0] == (phase,)


class TestConfigCommands:
    """Test init, validate and show-config."""

    def test_init_writes_defaults(self, workdir: Path) -> None:
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0, result.output
        assert "[artifact:opentest4j]" in (workdir / "modbuild.ini").read_text()

    def test_init_keeps_existing_file_without_confirmation(self, workdir: Path) -> None:
        (workdir / "modbuild.ini").write_text("[DEFAULT]\ncompiler = ecj\n")
        result = runner.invoke(app, ["init"], input="n\n")
        assert result.exit_code == 1
        assert "ecj" in (workdir / "modbuild.ini").read_text()

    def test_init_force(self, workdir: Path) -> None:
        (workdir / "modbuild.ini").write_text("[DEFAULT]\ncompiler = ecj\n")
        result = runner.invoke(app, ["init", "--force"])
        assert result.exit_code == 0, result.output
        assert "compiler = javac" in (workdir / "modbuild.ini").read_text()

    def test_validate(self, workdir: Path) -> None:
        result = runner.invoke(app, ["validate"])
        assert result.exit_code == 0, result.output
        assert "Validated Settings" in result.output

    def test_validate_invalid(self, workdir: Path) -> None:
        (workdir / "modbuild.ini").write_text("[DEFAULT]\noutput_dir = /tmp/mods\n")
        result = runner.invoke(app, ["validate"])
        assert result.exit_code == 1
        assert "Configuration is invalid" in result.output

    def test_show_config(self, workdir: Path) -> None:
        result = runner.invoke(app, ["--show-config"])
        assert result.exit_code == 0, result.output
        assert "compiler = javac" in result.output
        assert "artifacts" in result.output


class TestDiagnose:
    """Test the diagnose command."""

    @patch("modbuild.cli.app._check_repository", new_callable=AsyncMock)
    @patch("modbuild.cli.app.shutil.which")
    def test_all_checks_pass(
        self, mock_which: MagicMock, mock_check: AsyncMock, source_tree: Path
    ) -> None:
        mock_which.side_effect = lambda name: f"/usr/bin/{name}"
        mock_check.return_value = (True, "HTTP 200")

        result = runner.invoke(app, ["diagnose"])

        assert result.exit_code == 0, result.output
        assert "All checks passed" in result.output
        assert mock_check.await_count == 3

    @patch("modbuild.cli.app._check_repository", new_callable=AsyncMock)
    @patch("modbuild.cli.app.shutil.which")
    def test_missing_tool_and_sources(
        self, mock_which: MagicMock, mock_check: AsyncMock, workdir: Path
    ) -> None:
        mock_which.return_value = None
        mock_check.return_value = (True, "HTTP 200")

        result = runner.invoke(app, ["diagnose"])

        assert result.exit_code == 1
        assert "not found on PATH" in result.output
