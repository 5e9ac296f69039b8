"""Unit tests for the CLI commands."""

import json

import pytest
from click.testing import CliRunner
from rich.console import Console

from folioscribe import cli as cli_module
from folioscribe.cli import cli, reload_source
from folioscribe.document.model import DocumentModel
from folioscribe.editing.collaborator import GenerationCollaborator
from folioscribe.models.config import Config, LLMConfig, PreviewConfig
from folioscribe.models.provenance import FieldRef
from folioscribe.services.exceptions import UnknownTemplate


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config(monkeypatch):
    """Default config without an llm section; logging left unconfigured."""
    current = {"config": Config()}
    # Wide consoles so rich tables never wrap ids
    monkeypatch.setattr(cli_module, "console", Console(width=200))
    monkeypatch.setattr(cli_module, "err_console", Console(stderr=True, width=200))
    monkeypatch.setattr(cli_module, "configure_logging", lambda: None)
    monkeypatch.setattr(cli_module, "load_config", lambda: current["config"])
    return current


@pytest.fixture
def portfolio_file(tmp_path, portfolio_dict):
    path = tmp_path / "portfolio.json"
    path.write_text(json.dumps(portfolio_dict), encoding="utf-8")
    return path


class TestTemplatesCommand:
    """Test `folioscribe templates`."""

    def test_lists_templates(self, runner, config):
        """Test every built-in template is listed."""
        result = runner.invoke(cli, ["templates"])

        assert result.exit_code == 0
        for template_id in ("minimal", "clean", "colorful", "elegant"):
            assert template_id in result.output


class TestCompileCommand:
    """Test `folioscribe compile`."""

    def test_compile_to_file(self, runner, config, portfolio_file, tmp_path):
        """Test compiling a portfolio into an HTML file."""
        output = tmp_path / "out.html"

        result = runner.invoke(cli, ["compile", str(portfolio_file), "-t", "clean", "-o", str(output)])

        assert result.exit_code == 0, result.output
        html = output.read_text(encoding="utf-8")
        assert html.startswith("<!DOCTYPE html>")
        assert 'content="folioscribe/clean"' in html

    def test_compile_from_stdin(self, runner, config, portfolio_dict):
        """Test "-" reads the portfolio from stdin and writes HTML to stdout."""
        result = runner.invoke(cli, ["compile", "-"], input=json.dumps(portfolio_dict))

        assert result.exit_code == 0, result.output
        assert "Grace Hopper" in result.output
        assert 'content="folioscribe/minimal"' in result.output

    def test_invalid_json(self, runner, config, tmp_path):
        """Test a broken input file is reported, not raised."""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        result = runner.invoke(cli, ["compile", str(path)])

        assert result.exit_code == 1
        assert "not valid JSON" in result.output

    def test_unknown_template_rejected(self, runner, config, portfolio_file):
        """Test click rejects template ids outside the registry."""
        result = runner.invoke(cli, ["compile", str(portfolio_file), "-t", "brutalist"])

        assert result.exit_code == 2


class TestScoreCommand:
    """Test `folioscribe score`."""

    def test_score_text(self, runner, config):
        """Test scoring text given on the command line."""
        text = (
            "Over 3 months I explored and analyzed customer churn data. "
            "I learned to design experiments carefully. "
            "This connects to my career interest in data science."
        )

        result = runner.invoke(cli, ["score", text, "--locale", "en", "--max-length", str(len(text))])

        assert result.exit_code == 0, result.output
        assert "Score" in result.output
        assert "6/6" in result.output

    def test_score_empty_file(self, runner, config, tmp_path):
        """Test an empty file scores zero without failing."""
        path = tmp_path / "empty.txt"
        path.write_text("", encoding="utf-8")

        result = runner.invoke(cli, ["score", "-f", str(path)])

        assert result.exit_code == 0, result.output
        assert "0/6" in result.output


class FakeCollaborator(GenerationCollaborator):
    def __init__(self, client):
        self.client = client

    async def generate(self, current_data, instruction):
        return json.dumps({**current_data, "about": "Edited about."})


class TestEditCommand:
    """Test `folioscribe edit`."""

    def test_requires_llm(self, runner, config, portfolio_file):
        """Test a clear error when no LLM is configured."""
        result = runner.invoke(cli, ["edit", str(portfolio_file), "Shorten the about"])

        assert result.exit_code == 1
        assert "No LLM configured" in result.output

    def test_edit_applied(self, runner, config, portfolio_file, tmp_path, monkeypatch):
        """Test an accepted edit is written out."""
        config["config"] = Config(
            llm=LLMConfig(endpoint="http://localhost:11434", api_key="ollama", model="llama3")
        )
        monkeypatch.setattr(cli_module, "LLMCollaborator", FakeCollaborator)
        output = tmp_path / "edited.json"

        result = runner.invoke(cli, ["edit", str(portfolio_file), "Shorten the about", "-o", str(output)])

        assert result.exit_code == 0, result.output
        edited = json.loads(output.read_text(encoding="utf-8"))
        assert edited["about"] == "Edited about."
        assert edited["name"] == "Grace Hopper"

    def test_malformed_response_reported(self, runner, config, portfolio_file, monkeypatch):
        """Test a malformed collaborator response fails the command cleanly."""
        class BrokenCollaborator(FakeCollaborator):
            async def generate(self, current_data, instruction):
                return "I'm sorry, I can't do that."

        config["config"] = Config(
            llm=LLMConfig(endpoint="http://localhost:11434", api_key="ollama", model="llama3")
        )
        monkeypatch.setattr(cli_module, "LLMCollaborator", BrokenCollaborator)

        result = runner.invoke(cli, ["edit", str(portfolio_file), "Shorten the about"])

        assert result.exit_code == 1
        assert "The edit was not applied" in result.output


class TestAutofillCommand:
    """Test `folioscribe autofill`."""

    def test_fills_defaults(self, runner, config, tmp_path):
        """Test empty fields come back filled."""
        source = tmp_path / "sparse.json"
        source.write_text(json.dumps({"name": "Grace Hopper"}), encoding="utf-8")
        output = tmp_path / "filled.json"

        result = runner.invoke(cli, ["autofill", str(source), "-t", "clean", "-o", str(output)])

        assert result.exit_code == 0, result.output
        filled = json.loads(output.read_text(encoding="utf-8"))
        assert filled["name"] == "Grace Hopper"
        assert filled["title"] == "Software Developer"
        assert filled["location"] == "Seoul, South Korea"

    def test_expand_requires_llm(self, runner, config, portfolio_file):
        """Test --expand needs an LLM."""
        result = runner.invoke(cli, ["autofill", str(portfolio_file), "--expand"])

        assert result.exit_code == 1
        assert "No LLM configured" in result.output


class TestPreviewCommand:
    """Test `folioscribe preview` without --watch."""

    def test_writes_preview(self, runner, config, portfolio_file, tmp_path):
        """Test a single preview render is written to the output file."""
        output = tmp_path / "preview.html"

        result = runner.invoke(cli, ["preview", str(portfolio_file), "-t", "elegant", "-o", str(output)])

        assert result.exit_code == 0, result.output
        html = output.read_text(encoding="utf-8")
        assert "Grace Hopper" in html
        assert 'content="folioscribe/elegant"' in html


class TestConfiguredTemplate:
    """Test commands that fall back to preview.default_template."""

    @pytest.fixture
    def bad_default(self, config):
        config["config"] = Config(preview=PreviewConfig(default_template="brutalist"))
        return config

    @pytest.mark.parametrize("command", ["compile", "autofill"])
    def test_unknown_default_reported(self, runner, bad_default, portfolio_file, command):
        """Test an unknown configured template is a clean error, not a traceback."""
        result = runner.invoke(cli, [command, str(portfolio_file)])

        assert result.exit_code == 1
        assert "brutalist" in result.output
        assert "preview.default_template" in result.output
        assert not isinstance(result.exception, UnknownTemplate)

    def test_unknown_default_in_preview(self, runner, bad_default, portfolio_file, tmp_path):
        """Test preview checks the configured template before rendering."""
        output = tmp_path / "preview.html"

        result = runner.invoke(cli, ["preview", str(portfolio_file), "-o", str(output)])

        assert result.exit_code == 1
        assert "brutalist" in result.output
        assert not output.exists()

    def test_explicit_template_wins(self, runner, bad_default, portfolio_file, tmp_path):
        """Test -t overrides a broken configured default."""
        output = tmp_path / "out.html"

        result = runner.invoke(cli, ["compile", str(portfolio_file), "-t", "clean", "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert 'content="folioscribe/clean"' in output.read_text(encoding="utf-8")


class TestReloadSource:
    """Test the file reload used by `folioscribe preview --watch`."""

    def test_reload_keeps_user_edits(self, portfolio_file, portfolio_dict):
        """Test fields changed on disk stay user_edited instead of reverting."""
        model = DocumentModel.from_portfolio(json.loads(portfolio_file.read_text(encoding="utf-8")), user_id="cli")
        about = FieldRef.profile("about")
        model.commit_edit(model.block_for(about).block_id, "Edited in the preview.", "cli")

        portfolio_dict["about"] = "Edited again on disk."
        portfolio_file.write_text(json.dumps(portfolio_dict), encoding="utf-8")
        reload_source(model, portfolio_file)

        block = model.block_for(about)
        assert block.text == "Edited again on disk."
        assert block.origin == "user_edited"
        assert model.provenance.get(about).origin == "user_edited"
        assert model.provenance.get(FieldRef.profile("name")).origin == "user_provided"
