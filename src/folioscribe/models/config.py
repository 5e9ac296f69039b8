"""Configuration models for Folioscribe."""

from pydantic import BaseModel, Field, HttpUrl
from pathlib import Path
from typing import Literal, Optional
import yaml
import os
import stat


class LLMConfig(BaseModel):
    """Configuration for the generation collaborator's API connection."""

    endpoint: HttpUrl = Field(
        ...,
        description="LLM API endpoint URL (OpenAI or Ollama compatible)"
    )

    api_key: str = Field(
        ...,
        description="API key for authentication"
    )

    model: str = Field(
        ...,
        description="Model identifier (e.g., 'gpt-4o-mini', 'llama3')"
    )

    temperature: float = Field(
        default=0.5,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for edit and expansion requests"
    )

    max_tokens: int = Field(
        default=4000,
        ge=256,
        description="Upper bound on collaborator response length"
    )

    num_ctx: int = Field(
        default=32768,
        ge=1024,
        description="Context window size (Ollama-specific, controls VRAM usage)"
    )

    model_config = {"frozen": True}


class PreviewConfig(BaseModel):
    """Configuration for live preview synchronization."""

    debounce_ms: int = Field(
        default=100,
        ge=0,
        le=5000,
        description="Delay collapsing bursts of edits into one compile+sync"
    )

    default_template: str = Field(
        default="minimal",
        description="Template used when none is requested"
    )

    model_config = {"frozen": True}


class EditingConfig(BaseModel):
    """Configuration for natural-language edits."""

    validation: Literal["strict", "lenient"] = Field(
        default="strict",
        description="strict: schema-validate and keep required scalars; lenient: accept any JSON object"
    )

    model_config = {"frozen": True}


class QualityConfig(BaseModel):
    """Configuration for the heuristic text-quality scorer."""

    locale: Literal["ko", "en"] = Field(
        default="ko",
        description="Term lists used by the keyword/avoidance/growth/connection checks"
    )

    max_length: int = Field(
        default=500,
        ge=1,
        description="Default target length when none is given"
    )

    model_config = {"frozen": True}


class Config(BaseModel):
    """Root configuration for Folioscribe."""

    llm: Optional[LLMConfig] = Field(default=None, description="Generation collaborator settings")
    preview: PreviewConfig = Field(default_factory=PreviewConfig, description="Live preview settings")
    editing: EditingConfig = Field(default_factory=EditingConfig, description="Natural-language edit settings")
    quality: QualityConfig = Field(default_factory=QualityConfig, description="Quality scorer settings")

    @classmethod
    def load(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file.

        Validates file permissions before loading.
        Raises PermissionError if file is group/world readable.

        Args:
            path: Path to config.yaml file

        Returns:
            Validated Config instance

        Raises:
            PermissionError: If file permissions are too open
            FileNotFoundError: If config file doesn't exist
            ValueError: If YAML is invalid or validation fails
        """
        if not path.exists():
            raise FileNotFoundError(
                f"Configuration file not found at {path}\n\n"
                f"Please create the file with the following format:\n\n"
                f"llm:\n"
                f"  endpoint: https://api.openai.com/v1\n"
                f"  api_key: YOUR_API_KEY_HERE\n"
                f"  model: gpt-4o-mini\n\n"
                f"preview:\n"
                f"  debounce_ms: 100\n\n"
                f"editing:\n"
                f"  validation: strict\n"
            )

        # API keys live here, so the file must be private (600)
        mode = os.stat(path).st_mode
        if mode & (stat.S_IRWXG | stat.S_IRWXO):
            raise PermissionError(
                f"Config file has overly permissive permissions: {oct(mode)}\n"
                f"Run: chmod 600 {path}"
            )

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    model_config = {"frozen": True}
