"""
Tests for CLI commands.

Tests the Typer-based entry point.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from esboot.cli.main import app
from esboot.core.constants import MEMORY_GIB_BYTES
from esboot.core.errors import InsufficientMemory


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def clean_env():
    """Environment with only what the command under test needs."""
    with patch.dict("os.environ", {"INSTANCE_RAM": "1Gi"}, clear=True):
        yield


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self, runner):
        """Test CLI help command."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "Elasticsearch" in result.output

    def test_version(self, runner):
        """Test the version flag."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "esboot version" in result.output

    def test_invalid_environment(self, runner):
        """Test unparsable settings exit with 1."""
        with patch.dict("os.environ", {"RETRY_COUNT": "lots"}, clear=True):
            result = runner.invoke(app, ["heap"])

        assert result.exit_code == 1


class TestHeapCommand:
    """Test the heap command."""

    def test_prints_flags(self, runner, clean_env):
        """Test the computed flags are shown."""
        with patch("esboot.cli.main.read_cgroup_limit", return_value=2 * MEMORY_GIB_BYTES):
            result = runner.invoke(app, ["heap"])

        assert result.exit_code == 0
        assert "-Xms512m -Xmx512m" in result.output

    def test_invalid_ram(self, runner):
        """Test a bad INSTANCE_RAM exits with 1."""
        with patch.dict("os.environ", {"INSTANCE_RAM": "lots"}, clear=True):
            with patch("esboot.cli.main.read_cgroup_limit", return_value=2 * MEMORY_GIB_BYTES):
                result = runner.invoke(app, ["heap"])

        assert result.exit_code == 1

    def test_no_cgroup_limit(self, runner, clean_env):
        """Test a host without a readable limit exits with 1."""
        with patch("esboot.cli.main.read_cgroup_limit", return_value=None):
            result = runner.invoke(app, ["heap"])

        assert result.exit_code == 1


class TestStartCommand:
    """Test the start command."""

    def test_start_runs_launcher(self, runner, clean_env):
        """Test start hands over to the launcher."""
        with patch("esboot.cli.main.Launcher") as launcher_class:
            result = runner.invoke(app, ["start"])

        assert result.exit_code == 0
        launcher_class.return_value.run.assert_called_once()

    def test_default_command_is_start(self, runner, clean_env):
        """Test running without a command starts the node."""
        with patch("esboot.cli.main.Launcher") as launcher_class:
            runner.invoke(app, [])

        launcher_class.return_value.run.assert_called_once()

    def test_config_error_exits_1(self, runner, clean_env):
        """Test fatal configuration errors map to exit status 1."""
        with patch("esboot.cli.main.Launcher") as launcher_class:
            launcher_class.return_value.run.side_effect = InsufficientMemory(256, 128)
            result = runner.invoke(app, ["start"])

        assert result.exit_code == 1


class TestTemplatesCommand:
    """Test the background unit command."""

    def test_success(self, runner, clean_env):
        """Test a clean publish exits 0."""
        with patch("esboot.cli.main.poll_then_publish", new=AsyncMock(return_value=0)):
            result = runner.invoke(app, ["templates"])

        assert result.exit_code == 0

    def test_failure_exit_code(self, runner, clean_env):
        """Test a failed background unit exits with its code."""
        with patch("esboot.cli.main.poll_then_publish", new=AsyncMock(return_value=1)):
            result = runner.invoke(app, ["templates"])

        assert result.exit_code == 1
