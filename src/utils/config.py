"""Configuration loader for the notebook documentation generator.

Loads settings from configs/config.yaml and provides typed access
to all configuration sections via dataclasses. Secrets are never read
from this file; they come from the .env source (see src.security).
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "configs" / "config.yaml"


@dataclass
class APIConfig:
    """Configuration for the completion service client."""

    base_url: str = "https://api.openai.com/v1"
    model: str = "gpt-5-mini"
    timeout_seconds: float = 120.0


@dataclass
class SecretsConfig:
    """Names of the .env entries and an optional fixed .env location."""

    key_name: str = "ENCRYPTION_PASSWORD"
    credential_name: str = "OPENAI_API_KEY_ENC"
    env_file: Optional[str] = None


@dataclass
class PromptConfig:
    """Configuration for prompt rendering."""

    templates_dir: Optional[str] = None
    template: str = "notebook_doc.md.j2"
    author: str = "Stefan B. J. Meeuwessen"


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "WARNING"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


@dataclass
class AppConfig:
    """Top-level application configuration."""

    api: APIConfig = field(default_factory=APIConfig)
    secrets: SecretsConfig = field(default_factory=SecretsConfig)
    prompt: PromptConfig = field(default_factory=PromptConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load application configuration from a YAML file.

    Reads the YAML config file and constructs a fully typed AppConfig
    object. Falls back to defaults for any missing values.

    Args:
        config_path: Path to the YAML config file. If None, uses the
            default path at configs/config.yaml.

    Returns:
        A fully populated AppConfig instance.

    Raises:
        yaml.YAMLError: If the config file contains invalid YAML.
    """
    path = Path(config_path) if config_path else _DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.warning("Config file not found at %s, using defaults", path)
        return AppConfig()

    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    logger.debug("Loaded configuration from %s", path)

    api_data = raw.get("api") or {}
    api_config = APIConfig(
        base_url=api_data.get("base_url", "https://api.openai.com/v1"),
        model=api_data.get("model", "gpt-5-mini"),
        timeout_seconds=float(api_data.get("timeout_seconds", 120.0)),
    )

    secrets_data = raw.get("secrets") or {}
    secrets_config = SecretsConfig(
        key_name=secrets_data.get("key_name", "ENCRYPTION_PASSWORD"),
        credential_name=secrets_data.get("credential_name", "OPENAI_API_KEY_ENC"),
        env_file=secrets_data.get("env_file"),
    )

    prompt_data = raw.get("prompt") or {}
    prompt_config = PromptConfig(
        templates_dir=prompt_data.get("templates_dir"),
        template=prompt_data.get("template", "notebook_doc.md.j2"),
        author=prompt_data.get("author", "Stefan B. J. Meeuwessen"),
    )

    logging_data = raw.get("logging") or {}
    logging_config = LoggingConfig(
        level=logging_data.get("level", "WARNING"),
        format=logging_data.get(
            "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ),
        file=logging_data.get("file"),
    )

    return AppConfig(
        api=api_config,
        secrets=secrets_config,
        prompt=prompt_config,
        logging=logging_config,
    )
