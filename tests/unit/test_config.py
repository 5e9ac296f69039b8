"""Unit tests for configuration models and the loader."""

import pytest
from pydantic import ValidationError

from folioscribe.config.loader import load_config
from folioscribe.models.config import Config, EditingConfig, LLMConfig, PreviewConfig


ENV_VARS = (
    "FOLIOSCRIBE_LLM_ENDPOINT",
    "FOLIOSCRIBE_LLM_API_KEY",
    "FOLIOSCRIBE_LLM_MODEL",
    "FOLIOSCRIBE_PREVIEW_DEBOUNCE_MS",
    "FOLIOSCRIBE_EDITING_VALIDATION",
    "FOLIOSCRIBE_QUALITY_LOCALE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def write_config(path, text, mode=0o600):
    path.write_text(text)
    path.chmod(mode)
    return path


class TestLLMConfig:
    """Test LLMConfig model."""

    def test_valid_config(self):
        """Test creating valid LLMConfig."""
        config = LLMConfig(
            endpoint="https://api.openai.com/v1",
            api_key="sk-test",
            model="gpt-4o-mini",
        )

        assert "api.openai.com" in str(config.endpoint)
        assert config.temperature == 0.5
        assert config.num_ctx == 32768

    def test_invalid_endpoint(self):
        """Test a non-URL endpoint is rejected."""
        with pytest.raises(ValidationError):
            LLMConfig(endpoint="not a url", api_key="k", model="m")

    def test_immutable(self):
        """Test LLMConfig is immutable."""
        config = LLMConfig(endpoint="http://localhost:11434", api_key="k", model="llama3")

        with pytest.raises(Exception):
            config.model = "other"


class TestSectionDefaults:
    """Test defaults of the optional sections."""

    def test_defaults(self):
        """Test an empty Config is usable without an llm section."""
        config = Config()

        assert config.llm is None
        assert config.preview.debounce_ms == 100
        assert config.preview.default_template == "minimal"
        assert config.editing.validation == "strict"
        assert config.quality.locale == "ko"

    def test_debounce_bounds(self):
        """Test debounce delays outside 0..5000 are rejected."""
        with pytest.raises(ValidationError):
            PreviewConfig(debounce_ms=-1)

    def test_validation_mode(self):
        """Test only strict and lenient are accepted."""
        with pytest.raises(ValidationError):
            EditingConfig(validation="loose")


class TestConfigLoad:
    """Test Config.load from YAML."""

    def test_load_valid_file(self, tmp_path):
        """Test loading a private config file."""
        path = write_config(tmp_path / "config.yaml", (
            "llm:\n"
            "  endpoint: https://api.openai.com/v1\n"
            "  api_key: sk-test\n"
            "  model: gpt-4o-mini\n"
            "preview:\n"
            "  debounce_ms: 250\n"
        ))

        config = Config.load(path)

        assert config.llm.model == "gpt-4o-mini"
        assert config.preview.debounce_ms == 250

    def test_permission_check(self, tmp_path):
        """Test group/world readable files are refused."""
        path = write_config(tmp_path / "config.yaml", "preview:\n  debounce_ms: 100\n", mode=0o644)

        with pytest.raises(PermissionError, match="chmod 600"):
            Config.load(path)

    def test_missing_file(self, tmp_path):
        """Test a missing file raises with an example config."""
        with pytest.raises(FileNotFoundError, match="llm:"):
            Config.load(tmp_path / "absent.yaml")

    def test_empty_file(self, tmp_path):
        """Test an empty file yields defaults."""
        path = write_config(tmp_path / "config.yaml", "")

        assert Config.load(path) == Config()


class TestLoadConfig:
    """Test load_config with environment overrides."""

    def test_missing_file_gives_defaults(self, tmp_path):
        """Test the loader tolerates a missing file."""
        config = load_config(tmp_path / "absent.yaml")

        assert config.llm is None
        assert config.editing.validation == "strict"

    def test_env_supplies_llm(self, tmp_path, monkeypatch):
        """Test the llm section can come entirely from the environment."""
        monkeypatch.setenv("FOLIOSCRIBE_LLM_ENDPOINT", "http://localhost:11434")
        monkeypatch.setenv("FOLIOSCRIBE_LLM_API_KEY", "ollama")
        monkeypatch.setenv("FOLIOSCRIBE_LLM_MODEL", "llama3")

        config = load_config(tmp_path / "absent.yaml")

        assert config.llm.model == "llama3"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        """Test environment values win over file values."""
        path = write_config(tmp_path / "config.yaml", (
            "llm:\n"
            "  endpoint: https://api.openai.com/v1\n"
            "  api_key: sk-test\n"
            "  model: gpt-4o-mini\n"
            "editing:\n"
            "  validation: strict\n"
        ))
        monkeypatch.setenv("FOLIOSCRIBE_LLM_MODEL", "gpt-4o")
        monkeypatch.setenv("FOLIOSCRIBE_EDITING_VALIDATION", "LENIENT")
        monkeypatch.setenv("FOLIOSCRIBE_QUALITY_LOCALE", "en")

        config = load_config(path)

        assert config.llm.model == "gpt-4o"
        assert config.llm.api_key == "sk-test"
        assert config.editing.validation == "lenient"
        assert config.quality.locale == "en"

    def test_invalid_debounce_ignored(self, tmp_path, monkeypatch):
        """Test a non-integer debounce override is ignored."""
        monkeypatch.setenv("FOLIOSCRIBE_PREVIEW_DEBOUNCE_MS", "soon")

        assert load_config(tmp_path / "absent.yaml").preview.debounce_ms == 100

    def test_partial_llm_env_rejected(self, tmp_path, monkeypatch):
        """Test an llm section missing required keys fails validation."""
        monkeypatch.setenv("FOLIOSCRIBE_LLM_MODEL", "llama3")

        with pytest.raises(ValidationError):
            load_config(tmp_path / "absent.yaml")

    def test_permission_check_applies(self, tmp_path):
        """Test the loader enforces the permission check too."""
        path = write_config(tmp_path / "config.yaml", "", mode=0o640)

        with pytest.raises(PermissionError):
            load_config(path)
