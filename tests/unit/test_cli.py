"""
Tests for the command-line interface.

The async helpers behind each command are patched; these tests cover option
handling, output formats and exit codes.
"""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner
from menuquarry import __version__
from menuquarry.cli import cli
from menuquarry.errors import MenuNotFoundError
from menuquarry.protocols import Candidate, ExtractionResult, SourceType

from tests.helpers.fakes import sample_menu

URL = "https://bistro.example"


@pytest.fixture(autouse=True)
def quiet_logging():
    with patch("menuquarry.cli.configure_logging") as configure:
        yield configure


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def result():
    return ExtractionResult(source=SourceType.HTML, menu=sample_menu(), source_url=f"{URL}/menu")


@pytest.mark.unit
class TestExtractCommand:
    """The extract command."""

    def test_json_output(self, runner, result):
        with runner.isolated_filesystem(), patch("menuquarry.cli._extract", AsyncMock(return_value=result)):
            outcome = runner.invoke(cli, ["extract", URL, "--json"])

        assert outcome.exit_code == 0, outcome.output
        payload = json.loads(outcome.stdout)
        assert payload["source"] == "html"
        assert payload["sourceUrl"] == f"{URL}/menu"
        assert payload["menu"]["main_courses"][0]["name"] == "Steak frites"

    def test_table_output(self, runner, result):
        with runner.isolated_filesystem(), patch("menuquarry.cli._extract", AsyncMock(return_value=result)):
            outcome = runner.invoke(cli, ["extract", URL])

        assert outcome.exit_code == 0
        assert "Steak frites" in outcome.output
        assert "main_courses" in outcome.output

    def test_output_file(self, runner, result):
        with runner.isolated_filesystem(), patch("menuquarry.cli._extract", AsyncMock(return_value=result)):
            outcome = runner.invoke(cli, ["extract", URL, "--output", "menu.json"])
            saved = json.loads(Path("menu.json").read_text(encoding="utf-8"))

        assert outcome.exit_code == 0
        assert "Saved to menu.json" in outcome.output
        assert saved == result.to_dict()

    def test_not_found_exits_with_error(self, runner):
        error = MenuNotFoundError(url=URL, detail="4 attempts (fetch_error=4)", attempts=4, failures={"fetch_error": 4})
        with runner.isolated_filesystem(), patch("menuquarry.cli._extract", AsyncMock(side_effect=error)):
            outcome = runner.invoke(cli, ["extract", URL, "--json"])

        assert outcome.exit_code == 1
        payload = json.loads(outcome.stdout)
        assert payload["kind"] == "not_found"
        assert payload["details"] == "4 attempts (fetch_error=4)"

    def test_not_found_human_readable(self, runner):
        error = MenuNotFoundError(url=URL, detail="2 attempts (validation_failed=2)")
        with runner.isolated_filesystem(), patch("menuquarry.cli._extract", AsyncMock(side_effect=error)):
            outcome = runner.invoke(cli, ["extract", URL])

        assert outcome.exit_code == 1
        assert "not_found" in outcome.output
        assert "validation_failed=2" in outcome.output

    def test_no_render_disables_browser(self, runner, result):
        extract = AsyncMock(return_value=result)
        with runner.isolated_filesystem(), patch("menuquarry.cli._extract", extract):
            runner.invoke(cli, ["extract", URL, "--no-render", "--json"])

        config, url = extract.await_args.args
        assert config.render.enabled is False
        assert url == URL

    def test_log_level_override(self, runner, result, quiet_logging):
        with runner.isolated_filesystem(), patch("menuquarry.cli._extract", AsyncMock(return_value=result)):
            runner.invoke(cli, ["--log-level", "DEBUG", "extract", URL, "--json"])

        (monitoring,) = quiet_logging.call_args.args
        assert monitoring.log_level == "DEBUG"


@pytest.mark.unit
class TestDiscoverCommand:
    """The discover command."""

    def test_lists_ranked_candidates(self, runner):
        candidates = [Candidate(url=f"{URL}/menu", score=25), Candidate(url=URL, score=0)]
        discover = AsyncMock(return_value=candidates)
        with runner.isolated_filesystem(), patch("menuquarry.cli._discover", discover):
            outcome = runner.invoke(cli, ["discover", URL, "--limit", "2"])

        assert outcome.exit_code == 0
        assert f"{URL}/menu" in outcome.output
        assert "25" in outcome.output
        config, _ = discover.await_args.args
        assert config.discovery.max_candidates == 2

    def test_limit_must_be_positive(self, runner):
        outcome = runner.invoke(cli, ["discover", URL, "--limit", "0"])
        assert outcome.exit_code == 2


@pytest.mark.unit
class TestValidateConfigCommand:
    """The validate-config command."""

    def test_valid_config(self, runner):
        with runner.isolated_filesystem():
            Path("menuquarry.yaml").write_text("discovery:\n  batch_size: 4\n")
            outcome = runner.invoke(cli, ["validate-config"])

        assert outcome.exit_code == 0
        assert "Resolved configuration" in outcome.output
        assert '"batch_size": 4' in outcome.output

    def test_invalid_config(self, runner):
        with runner.isolated_filesystem():
            Path("broken.yaml").write_text("discovery:\n  batch_size: 0\n")
            outcome = runner.invoke(cli, ["--config", "broken.yaml", "validate-config"])

        assert outcome.exit_code == 1
        assert "Invalid configuration" in outcome.output

    def test_version(self, runner):
        outcome = runner.invoke(cli, ["--version"])
        assert outcome.exit_code == 0
        assert __version__ in outcome.output
