"""Tests for the Landscape Deploy CLI."""

import re
from pathlib import Path
from unittest.mock import Mock, patch

import click
import pytest
from rich.console import Console
from typer.testing import CliRunner

from landscape_deploy import __version__
from landscape_deploy.cli import (
    _load_and_configure,
    _resolve_landscape_dir,
    _validate_configuration,
    app,
    error_msg,
    format_file_count,
    success_msg,
)
from landscape_deploy.config_manager import load_config, save_config
from landscape_deploy.exceptions import FileUploadError, UploadFilesError
from landscape_deploy.planner import UploadDecision
from landscape_deploy.sync_engine import UploadOutcome

# Helper: strip ANSI escape sequences from CLI output for stable assertions
ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text."""
    return ANSI_RE.sub("", text)


@pytest.fixture(autouse=True)
def wide_console():
    """Avoid line wrapping in captured output."""
    with patch("landscape_deploy.cli.console", Console(width=200)):
        yield


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    """Isolate tests from the user's saved configuration."""
    path = tmp_path / ".landscape-deploy" / "config.yaml"
    monkeypatch.delenv("LANDSCAPE_DEPLOY_BUCKET", raising=False)
    monkeypatch.delenv("LANDSCAPE_DEPLOY_VERBOSE", raising=False)
    monkeypatch.delenv("LANDSCAPE_DEPLOY_CONCURRENCY", raising=False)
    with patch("landscape_deploy.cli.get_config_path", return_value=path):
        yield path


def deploy_result(files_uploaded=2, dry_run=False, files=None):
    return {
        "state": "listing" if dry_run else "done",
        "dry_run": dry_run,
        "files_uploaded": files_uploaded,
        "files_skipped": {UploadDecision.SKIP_UP_TO_DATE.value: 1},
        "index_uploaded": True,
        "files": files or [],
    }


class TestCLI:
    """Test CLI interface."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_cli_help(self):
        result = self.runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "deploy" in strip_ansi(result.output)

    def test_cli_version(self):
        result = self.runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"landscape-deploy {__version__}" in strip_ansi(result.output)

    def test_deploy_without_bucket(self, config_path, tmp_path):
        result = self.runner.invoke(app, ["deploy", "--landscape-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "S3 bucket not configured" in strip_ansi(result.output)

    def test_deploy_with_missing_landscape_dir(self, config_path, tmp_path):
        missing = tmp_path / "missing"

        result = self.runner.invoke(app, ["deploy", "--bucket", "test-bucket", "--landscape-dir", str(missing)])

        assert result.exit_code == 1
        assert "landscape directory not found" in strip_ansi(result.output)

    def test_deploy_success(self, config_path, tmp_path):
        with patch("landscape_deploy.cli.SiteDeploy") as mock_deploy_class:
            mock_deploy_class.return_value.deploy.return_value = deploy_result()

            result = self.runner.invoke(app, ["deploy", "-b", "test-bucket", "-d", str(tmp_path)])

        out = strip_ansi(result.output)
        assert result.exit_code == 0
        assert "Uploaded 2 file(s)" in out
        assert "Landscape website deployed" in out

        config = mock_deploy_class.call_args[0][0]
        assert config.s3.bucket_name == "test-bucket"
        mock_deploy_class.return_value.deploy.assert_called_once_with(tmp_path.resolve(), dry_run=False)

    def test_deploy_concurrency_option(self, config_path, tmp_path):
        with patch("landscape_deploy.cli.SiteDeploy") as mock_deploy_class:
            mock_deploy_class.return_value.deploy.return_value = deploy_result()

            result = self.runner.invoke(
                app, ["deploy", "-b", "test-bucket", "-d", str(tmp_path), "--concurrency", "4"]
            )

        assert result.exit_code == 0
        assert mock_deploy_class.call_args[0][0].s3.upload_concurrency == 4

    def test_deploy_with_invalid_concurrency_env(self, config_path, tmp_path, monkeypatch):
        monkeypatch.setenv("LANDSCAPE_DEPLOY_CONCURRENCY", "0")

        with patch("landscape_deploy.cli.SiteDeploy") as mock_deploy_class:
            result = self.runner.invoke(app, ["deploy", "-b", "test-bucket", "-d", str(tmp_path)])

        assert result.exit_code == 1
        assert "Error loading configuration" in strip_ansi(result.output)
        mock_deploy_class.assert_not_called()

    def test_deploy_failure_reports_every_file(self, config_path, tmp_path):
        error = UploadFilesError([
            FileUploadError("b.css", RuntimeError("timeout")),
            FileUploadError("a.css", RuntimeError("boom")),
        ])
        with patch("landscape_deploy.cli.SiteDeploy") as mock_deploy_class:
            mock_deploy_class.return_value.deploy.side_effect = error

            result = self.runner.invoke(app, ["deploy", "-b", "test-bucket", "-d", str(tmp_path)])

        out = strip_ansi(result.output)
        assert result.exit_code == 1
        assert "Deploy failed" in out
        assert "- a.css: boom" in out
        assert "- b.css: timeout" in out

    def test_deploy_uses_saved_defaults(self, config_path, tmp_path):
        save_config(config_path, {"bucket": "saved-bucket", "landscape_dir": str(tmp_path)})

        with patch("landscape_deploy.cli.SiteDeploy") as mock_deploy_class:
            mock_deploy_class.return_value.deploy.return_value = deploy_result()

            result = self.runner.invoke(app, ["deploy"])

        assert result.exit_code == 0
        assert mock_deploy_class.call_args[0][0].s3.bucket_name == "saved-bucket"
        mock_deploy_class.return_value.deploy.assert_called_once_with(tmp_path.resolve(), dry_run=False)

    def test_deploy_dry_run_shows_plan(self, config_path, tmp_path):
        files = [
            UploadOutcome(key="app.js", decision=UploadDecision.UPLOAD),
            UploadOutcome(key="logos/abc.svg", decision=UploadDecision.SKIP_DEDUPLICATED),
            UploadOutcome(key="index.html", decision=UploadDecision.UPLOAD),
        ]
        with patch("landscape_deploy.cli.SiteDeploy") as mock_deploy_class:
            mock_deploy_class.return_value.deploy.return_value = deploy_result(dry_run=True, files=files)

            result = self.runner.invoke(app, ["deploy", "-b", "test-bucket", "-d", str(tmp_path), "--dry-run"])

        out = strip_ansi(result.output)
        assert result.exit_code == 0
        assert "logos/abc.svg" in out
        assert "skip-deduplicated" in out
        assert "Would upload 2 file(s)" in out
        assert "Dry run completed" in out
        mock_deploy_class.return_value.deploy.assert_called_once_with(tmp_path.resolve(), dry_run=True)

    def test_init_saves_defaults(self, config_path, tmp_path):
        result = self.runner.invoke(app, ["init", "--bucket", "my-bucket", "--landscape-dir", str(tmp_path)])

        assert result.exit_code == 0
        assert load_config(config_path) == {"bucket": "my-bucket", "landscape_dir": str(tmp_path.resolve())}


class TestHelperFunctions:
    """Test CLI helper functions."""

    def test_load_and_configure_with_overrides(self, monkeypatch):
        monkeypatch.delenv("LANDSCAPE_DEPLOY_BUCKET", raising=False)

        config = _load_and_configure("test-bucket", 7)

        assert config.s3.bucket_name == "test-bucket"
        assert config.s3.upload_concurrency == 7

    def test_load_and_configure_exception(self):
        with patch("landscape_deploy.cli.Config") as mock_config_class:
            mock_config_class.from_env.side_effect = Exception("Config error")

            with pytest.raises(click.exceptions.Exit):
                _load_and_configure(None, None)

    def test_validate_configuration_missing_bucket(self):
        mock_config = Mock()
        mock_config.s3.bucket_name = None

        with pytest.raises(click.exceptions.Exit):
            _validate_configuration(mock_config)

    def test_resolve_landscape_dir_without_path(self):
        assert _resolve_landscape_dir(None) == Path.cwd()


class TestMessageFormatters:
    """Test message formatting helper functions."""

    def test_error_msg(self):
        assert error_msg("Test error") == "[red]Test error[/red]"

    def test_success_msg(self):
        assert success_msg("Test success") == "[green]Test success[/green]"

    def test_format_file_count(self):
        assert format_file_count(5, "Uploaded") == "\nUploaded 5 file(s)"
