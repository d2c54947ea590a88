"""
Configuration Manager with YAML support and Pydantic validation.
"""

import hashlib
import json
import os
import re
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from grid_estimator.config.schemas import EstimatorConfig
from grid_estimator.utils.logger import LoggerMixin

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def substitute_env(value: Any) -> Any:
    """
    Replace ``${VAR}`` / ``${VAR:-default}`` references in string values.

    Unset variables without a default are left untouched.
    """
    if isinstance(value, str):

        def _replace(match: re.Match[str]) -> str:
            name, default = match.group(1), match.group(2)
            if name in os.environ:
                return os.environ[name]
            return default if default is not None else match.group(0)

        return _ENV_PATTERN.sub(_replace, value)
    if isinstance(value, dict):
        return {k: substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [substitute_env(v) for v in value]
    return value


class ConfigManager(LoggerMixin):
    """
    Configuration manager with YAML loading and validation.

    Features:
    - Load and validate YAML configurations with Pydantic
    - Environment variable substitution
    - Configuration versioning with hash tracking
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._config: EstimatorConfig | None = None
        self._config_hash: str | None = None

    def load(self) -> EstimatorConfig:
        """
        Load and validate configuration from file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValidationError: If config validation fails
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        try:
            with open(self.config_path, encoding="utf-8") as f:
                raw_config = yaml.safe_load(f) or {}

            raw_config = substitute_env(raw_config)

            config_str = json.dumps(raw_config, sort_keys=True)
            new_hash = hashlib.sha256(config_str.encode()).hexdigest()[:16]

            config = EstimatorConfig(**raw_config)

            self._config = config
            self._config_hash = new_hash

            self.logger.info("Configuration loaded successfully", version_hash=new_hash)
            return config

        except yaml.YAMLError as e:
            self.logger.error("Failed to parse YAML", error=str(e))
            raise
        except ValidationError as e:
            self.logger.error("Configuration validation failed", error=str(e))
            raise

    def get_config(self) -> EstimatorConfig:
        """
        Get current configuration.

        Raises:
            RuntimeError: If config not loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def get_config_version(self) -> str:
        if self._config_hash is None:
            raise RuntimeError("Configuration not loaded")
        return self._config_hash

    @staticmethod
    def create_example_config(path: Path) -> None:
        """Write an example configuration file to ``path``."""
        example_config = EstimatorConfig().model_dump(mode="json")

        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                example_config,
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
