"""Unit tests for CLI commands.

Tests cover:
- --version and help output
- Exit codes for configuration errors
- check printing the availability summary
- diagnostic exit codes
"""

import json
import re
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from courtbook import __version__
from courtbook.cli.main import app
from courtbook.core.protocols import AvailabilityResult
from courtbook.utils.config import AppConfig
from courtbook.utils.exceptions import BrowserUnavailableError, ConfigurationError

runner = CliRunner()


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    ansi_pattern = re.compile(r"\x1b\[[0-9;]*m")
    return ansi_pattern.sub("", text)


@pytest.fixture
def facade() -> MagicMock:
    facade = MagicMock()
    facade.shutdown = AsyncMock()
    facade.availability.check = AsyncMock(
        return_value=AvailabilityResult(
            court="DuPont",
            date="2025-07-29",
            available_times=["8:00 AM"],
            summary="DuPont has 1 available time slots on 2025-07-29: 8:00 AM.",
        )
    )
    facade.diagnostic = AsyncMock(
        return_value=json.dumps({"success": True, "testPageTitle": "Example"})
    )
    return facade


@pytest.fixture
def patched(facade):
    with (
        patch("courtbook.cli.main.ConfigLoader.load", return_value=AppConfig()),
        patch("courtbook.cli.main.build_facade", return_value=facade),
        patch("courtbook.cli.main.configure_logging"),
    ):
        yield facade


class TestVersionAndHelp:
    """Tests for --version and --help."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"courtbook v{__version__}" in result.stdout

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        output = strip_ansi(result.stdout)

        assert result.exit_code == 0
        for command in ("serve", "mcp", "check", "diagnostic"):
            assert command in output

    def test_check_help_lists_options(self) -> None:
        result = runner.invoke(app, ["check", "--help"])
        output = strip_ansi(result.stdout)

        assert "--date" in output
        assert "--court" in output
        assert "--time" in output


class TestConfigurationErrors:
    """Tests for configuration failures."""

    def test_bad_config_exits_4(self) -> None:
        with patch(
            "courtbook.cli.main.ConfigLoader.load",
            side_effect=ConfigurationError("Invalid value for COURTBOOK_AUTH_TTL"),
        ):
            result = runner.invoke(app, ["check"])

        assert result.exit_code == 4
        assert "COURTBOOK_AUTH_TTL" in strip_ansi(result.stdout)


class TestCheck:
    """Tests for the check command."""

    def test_prints_summary(self, patched) -> None:
        result = runner.invoke(app, ["check", "--date", "2025-07-29", "-c", "DuPont"])

        assert result.exit_code == 0
        assert "DuPont has 1 available" in strip_ansi(result.stdout)
        patched.availability.check.assert_awaited_once_with(
            date="2025-07-29", court="DuPont", time=None
        )
        patched.shutdown.assert_awaited_once()

    def test_site_error_exits_1(self, patched) -> None:
        patched.availability.check.return_value.error = "slot panel missing"

        result = runner.invoke(app, ["check"])

        assert result.exit_code == 1

    def test_browser_unavailable_exits_4(self, patched) -> None:
        patched.availability.check.side_effect = BrowserUnavailableError(
            "No automation browser configured"
        )

        result = runner.invoke(app, ["check"])

        assert result.exit_code == 4
        patched.shutdown.assert_awaited_once()


class TestDiagnostic:
    """Tests for the diagnostic command."""

    def test_success(self, patched) -> None:
        result = runner.invoke(app, ["diagnostic"])

        assert result.exit_code == 0
        assert "Example" in strip_ansi(result.stdout)

    def test_failure_exits_1(self, patched) -> None:
        patched.diagnostic.return_value = json.dumps(
            {"success": False, "error": "connection refused"}
        )

        result = runner.invoke(app, ["diagnostic"])

        assert result.exit_code == 1
