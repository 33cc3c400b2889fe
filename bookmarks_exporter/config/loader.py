"""Configuration loader with YAML parsing and environment variable substitution."""

import yaml
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional
from .models import ExporterConfig
from .settings import Settings


class ConfigLoader:
    """Load and validate exporter configuration."""

    @staticmethod
    def load(
        config_path: Optional[str] = None,
        overrides: Optional[Dict[str, Dict[str, Any]]] = None
    ) -> ExporterConfig:
        """
        Build configuration from defaults, an optional YAML file, the environment and overrides.

        Later sources win: defaults < YAML file < environment < overrides.

        Args:
            config_path: Optional path to YAML configuration file
            overrides: Nested {section: {field: value}}, typically from CLI flags

        Returns:
            ExporterConfig: Validated configuration object

        Raises:
            FileNotFoundError: If config_path is given but doesn't exist
            yaml.YAMLError: If YAML parsing fails
            pydantic.ValidationError: If configuration validation fails
        """
        raw_config: Dict[str, Any] = {}
        if config_path:
            raw_config = ConfigLoader.read_file(config_path)

        raw_config = ConfigLoader._merge(raw_config, Settings.overrides())
        raw_config = ConfigLoader._merge(raw_config, overrides or {})

        return ExporterConfig(**raw_config)

    @staticmethod
    def read_file(config_path: str) -> Dict[str, Any]:
        """
        Read a YAML file and substitute ${ENV_VAR} placeholders.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            dict: Raw configuration mapping (empty for an empty file)
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        if not isinstance(raw_config, dict):
            raise ValueError(f"Configuration root must be a mapping: {config_path}")

        return ConfigLoader._substitute_env_vars(raw_config)

    @staticmethod
    def _merge(base: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
        """Merge two nested section mappings, values in extra win. Neither input is mutated."""
        merged = {k: dict(v) if isinstance(v, dict) else v for k, v in base.items()}
        for section, values in extra.items():
            if isinstance(values, dict) and isinstance(merged.get(section), dict):
                merged[section].update(values)
            else:
                merged[section] = dict(values) if isinstance(values, dict) else values
        return merged

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """
        Recursively substitute ${ENV_VAR} placeholders with environment values.

        Args:
            obj: Object to process (str, dict, list, or primitive)

        Returns:
            Object with environment variables substituted
        """
        if isinstance(obj, str):
            pattern = r'\$\{(\w+)\}'
            return re.sub(pattern, lambda m: os.getenv(m.group(1), ''), obj)

        elif isinstance(obj, dict):
            return {k: ConfigLoader._substitute_env_vars(v) for k, v in obj.items()}

        elif isinstance(obj, list):
            return [ConfigLoader._substitute_env_vars(item) for item in obj]

        return obj
