"""
Tests for the secure-route CLI.
"""

import json
import os
import pytest
import tempfile
import yaml
from typer.testing import CliRunner

from secure_route import __version__
from secure_route.cli import app, describe_hooks
from secure_route.core.invocation import callback_hook
from secure_route.models.schemas import HookConfiguration


def legacy_login(username, password, callback):
    callback(None, username)


def modern_authorize(data):
    return data


@pytest.fixture
def cli_runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def config_file():
    """Config file pointing at hooks in this module."""
    with tempfile.TemporaryDirectory() as temp_dir:
        path = os.path.join(temp_dir, "config.yaml")
        with open(path, 'w') as f:
            yaml.safe_dump({
                "lock": True,
                "hooks": {
                    "login": "test_cli.legacy_login",
                    "authorize": "test_cli.modern_authorize",
                }
            }, f)
        yield path


class TestDescribeHooks:
    """Test hook reports."""

    def test_reports_conventions(self):
        """Callback and direct hooks are told apart."""
        config = HookConfiguration(
            login=legacy_login,
            authorize=modern_authorize,
            unauthorized=lambda request, response, next: None
        )

        reports = {r.name: r for r in describe_hooks(config)}

        assert reports["login"].style == "callback"
        assert reports["login"].declared == 3
        assert reports["login"].arguments == 2
        assert reports["authorize"].style == "direct"
        assert reports["unauthorized"].style == "sync"
        assert reports["logout"].configured is False
        assert reports["logout"].style == "unset"

    def test_explicit_tag(self):
        """Tagged hooks report their declared style."""
        config = HookConfiguration(logout=callback_hook(lambda *args: args[-1](None)))

        reports = {r.name: r for r in describe_hooks(config)}

        assert reports["logout"].style == "callback"

    def test_target_names_hook(self):
        """The report names the hook's module and qualified name."""
        reports = {r.name: r for r in describe_hooks(HookConfiguration(authorize=modern_authorize))}

        assert reports["authorize"].target == "test_cli.modern_authorize"


class TestInspectCommand:
    """Test the inspect command."""

    def test_inspect_json(self, cli_runner, config_file):
        """JSON output lists every hook."""
        result = cli_runner.invoke(app, ["inspect", "--config", config_file, "-o", "json"])

        assert result.exit_code == 0
        reports = {r["name"]: r for r in json.loads(result.stdout)}
        assert reports["login"]["style"] == "callback"
        assert reports["authorize"]["style"] == "direct"
        assert reports["retrieve"]["configured"] is False

    def test_inspect_yaml(self, cli_runner, config_file):
        """YAML output parses back to the reports."""
        result = cli_runner.invoke(app, ["inspect", "--config", config_file, "-o", "yaml"])

        assert result.exit_code == 0
        names = [r["name"] for r in yaml.safe_load(result.stdout)]
        assert "login" in names

    def test_inspect_table(self, cli_runner, config_file):
        """Table output shows flags and conventions."""
        result = cli_runner.invoke(app, ["inspect", "--config", config_file])

        assert result.exit_code == 0
        assert "callback" in result.stdout
        assert "lock: True" in result.stdout

    def test_inspect_bad_hook(self, cli_runner):
        """Unimportable hooks exit with status 1."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, "config.yaml")
            with open(path, 'w') as f:
                yaml.safe_dump({"hooks": {"login": "nowhere.at_all"}}, f)

            result = cli_runner.invoke(app, ["inspect", "--config", path])

        assert result.exit_code == 1


class TestVersionCommand:
    """Test the version command."""

    def test_version(self, cli_runner):
        """version prints the package version."""
        result = cli_runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout
