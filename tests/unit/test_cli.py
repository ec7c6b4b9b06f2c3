"""Tests for the redactlog command line tools."""

import pytest
from click.testing import CliRunner

from redactlog.cli import cli

VALID_CONFIG = """\
defaults:
  level: info
  transport: both
transports:
  - name: plain
    type: stream
    format: text
  - name: clear
    type: stream
    format: text
    showSensitive: true
    levelLimit: warn
  - name: both
    type: group
    members: [plain, clear]
modules:
  - name: sample
    level: verbose
"""

INVALID_CONFIG = """\
defaults:
  level: loud
transports:
  - name: plain
    type: stream
"""


@pytest.fixture
def runner():
    """Click test runner."""
    return CliRunner()


@pytest.fixture
def valid_file(tmp_path):
    path = tmp_path / "logging.yaml"
    path.write_text(VALID_CONFIG)
    return str(path)


@pytest.fixture
def invalid_file(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text(INVALID_CONFIG)
    return str(path)


class TestValidate:
    """Tests for the validate command."""

    def test_valid(self, runner, valid_file):
        """A valid file should exit 0 and list its transports."""
        result = runner.invoke(cli, ["validate", valid_file])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output
        assert "plain" in result.output
        assert "both" in result.output

    def test_invalid(self, runner, invalid_file):
        """An invalid file should exit 1 and list every issue."""
        result = runner.invoke(cli, ["validate", invalid_file])
        assert result.exit_code == 1
        assert "format-required" in result.output
        assert "invalid-level" in result.output
        assert "transport-required" in result.output

    def test_missing_file(self, runner, tmp_path):
        """A missing file should be rejected by click."""
        result = runner.invoke(cli, ["validate", str(tmp_path / "absent.yaml")])
        assert result.exit_code == 2


class TestSample:
    """Tests for the sample command."""

    def test_sample_output(self, runner, valid_file):
        """Sample messages should be redacted on the non-revealing stream."""
        result = runner.invoke(cli, ["sample", valid_file])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert "[   info] sample.run - plain info message with 50% done" in lines
        assert "[ ERROR ]Rsample.run - card [redacted] was charged" in lines
        assert "[ ERROR ]Rsample.run - card 4111-1111-1111-1111 was charged" in lines
        assert "[ ERROR ]Rsample.run - password follows hunter2" in lines
        assert "[ ERROR ]Rsample.run - password follows [redacted]" in lines

    def test_level_ceiling(self, runner, valid_file):
        """Levels past the module's ceiling should not be sampled."""
        result = runner.invoke(cli, ["sample", valid_file])
        assert "sample.run - plain verbose message" in result.output
        assert "plain debug message" not in result.output

    def test_http_identity(self, runner, valid_file):
        """The HTTP-style logger should include its path."""
        result = runner.invoke(cli, ["sample", valid_file, "--path", "/orders"])
        assert "[   info] sample GET /orders - plain info message with 50% done" in result.output

    def test_whole_line_sensitive(self, runner, valid_file):
        """Fully sensitive lines should only reach the revealing stream."""
        result = runner.invoke(cli, ["sample", valid_file])
        sensitive = [l for l in result.output.splitlines() if "whole line is sensitive" in l]
        # clear only accepts warn and above: fault, error and warn for two loggers
        assert len(sensitive) == 6
