"""Configuration loader with YAML and environment variable support.

This module reads ~/.config/folioscribe/config.yaml and allows environment
variable overrides using the FOLIOSCRIBE_* prefix.

Environment variables:
- FOLIOSCRIBE_LLM_ENDPOINT: Override LLM API endpoint
- FOLIOSCRIBE_LLM_API_KEY: Override LLM API key
- FOLIOSCRIBE_LLM_MODEL: Override LLM model name
- FOLIOSCRIBE_PREVIEW_DEBOUNCE_MS: Override preview debounce delay
- FOLIOSCRIBE_EDITING_VALIDATION: Override edit validation mode (strict/lenient)
- FOLIOSCRIBE_QUALITY_LOCALE: Override quality scorer locale (ko/en)
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from folioscribe.models.config import Config


DEFAULT_CONFIG_PATH = Path.home() / ".config" / "folioscribe" / "config.yaml"


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file with environment variable overrides.

    A missing file is not an error: every section has defaults except
    ``llm``, which only the commands that talk to the collaborator need.

    Args:
        config_path: Path to config file. If None, uses ~/.config/folioscribe/config.yaml

    Returns:
        Validated Config object

    Raises:
        PermissionError: If the config file is group/world accessible
        ValueError: If config file is invalid
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if config_path.exists():
        # Config.load enforces the permission check
        data = Config.load(config_path).model_dump(mode="json", exclude_none=True)
    else:
        data = {}

    data = _apply_env_overrides(data)

    # Drop an llm section that env vars only partially filled
    if data.get("llm") == {}:
        data.pop("llm")

    return Config(**data)


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration data.

    Environment variables use the format: FOLIOSCRIBE_SECTION_KEY
    For example: FOLIOSCRIBE_LLM_ENDPOINT sets data['llm']['endpoint']

    Args:
        data: Base configuration dictionary from YAML

    Returns:
        Configuration dictionary with environment overrides applied
    """
    for section in ("llm", "preview", "editing", "quality"):
        data.setdefault(section, {})

    if env_endpoint := os.getenv("FOLIOSCRIBE_LLM_ENDPOINT"):
        data["llm"]["endpoint"] = env_endpoint

    if env_api_key := os.getenv("FOLIOSCRIBE_LLM_API_KEY"):
        data["llm"]["api_key"] = env_api_key

    if env_model := os.getenv("FOLIOSCRIBE_LLM_MODEL"):
        data["llm"]["model"] = env_model

    if env_debounce := os.getenv("FOLIOSCRIBE_PREVIEW_DEBOUNCE_MS"):
        try:
            data["preview"]["debounce_ms"] = int(env_debounce)
        except ValueError:
            pass  # Invalid value, ignore

    if env_validation := os.getenv("FOLIOSCRIBE_EDITING_VALIDATION"):
        data["editing"]["validation"] = env_validation.lower()

    if env_locale := os.getenv("FOLIOSCRIBE_QUALITY_LOCALE"):
        data["quality"]["locale"] = env_locale.lower()

    return data
