"""Configuration loading from YAML files and environment variables."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from ...domain.exceptions import ConfigurationError
from .config_models import FanoutConfig


DEFAULT_CONFIG_TEMPLATE = """\
# fanout configuration
parallel:
  thread_count: 2
  # unit_timeout: 600

logging:
  level: INFO
  console: true
  # file: ./fanout.log
  rotation: daily
  retention_days: 30

output:
  color: true
  verbose: false
  save_report: false
  output_directory: ./fanout_reports

# Properties inherited by every work unit; usable as ${name} in commands.
properties: {}

targets:
  echo:
    command: echo ${item}
    description: Print the bound item

jobs:
  example:
    list: alpha,beta,gamma
    target: echo
    param: item
"""


class ConfigLoader:
    """
    Loads FanoutConfig from the first existing config file and applies
    environment overrides on top.
    """

    DEFAULT_PATHS = [
        Path("fanout.yaml"),
        Path("fanout.yml"),
        Path.home() / ".fanout" / "config.yaml",
    ]

    # env var -> (section, key, converter)
    ENV_OVERRIDES = {
        "FANOUT_THREAD_COUNT": ("parallel", "thread_count", int),
        "FANOUT_UNIT_TIMEOUT": ("parallel", "unit_timeout", float),
        "FANOUT_LOG_LEVEL": ("logging", "level", str),
        "FANOUT_LOG_FILE": ("logging", "file", str),
    }

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> FanoutConfig:
        """
        Load configuration.

        Args:
            config_path: Explicit config file; must exist when given

        Returns:
            Validated configuration

        Raises:
            ConfigurationError: Missing explicit file, bad YAML or invalid values
        """
        data: Dict[str, Any] = {}

        path = cls._resolve_path(config_path)
        if path is not None:
            data = cls._read_yaml(path)

        cls._apply_env_overrides(data)

        try:
            return FanoutConfig.model_validate(data)
        except ValidationError as e:
            source = str(path) if path else "defaults"
            raise ConfigurationError(f"Invalid configuration ({source}):\n{e}") from e

    @classmethod
    def _resolve_path(cls, config_path: Optional[str]) -> Optional[Path]:
        if config_path:
            path = Path(config_path)
            if not path.is_file():
                raise ConfigurationError(f"Configuration file not found: {path}")
            return path
        for candidate in cls.DEFAULT_PATHS:
            if candidate.is_file():
                return candidate
        return None

    @staticmethod
    def _read_yaml(path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read configuration {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration {path} must be a mapping")
        return data

    @classmethod
    def _apply_env_overrides(cls, data: Dict[str, Any]):
        for env_var, (section, key, convert) in cls.ENV_OVERRIDES.items():
            raw = os.environ.get(env_var)
            if raw is None or raw == "":
                continue
            try:
                value = convert(raw)
            except ValueError as e:
                raise ConfigurationError(f"Invalid value for {env_var}: {raw!r}") from e
            section_data = data.setdefault(section, {})
            if not isinstance(section_data, dict):
                raise ConfigurationError(f"Configuration section '{section}' must be a mapping")
            section_data[key] = value

    @classmethod
    def create_default_config(cls, path: Optional[str] = None) -> Path:
        """
        Write the default configuration template.

        Args:
            path: Target file (defaults to ./fanout.yaml)

        Returns:
            Path of the written file

        Raises:
            ConfigurationError: If the file already exists
        """
        target = Path(path) if path else cls.DEFAULT_PATHS[0]
        if target.exists():
            raise ConfigurationError(f"Configuration file already exists: {target}")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
        return target

    @classmethod
    def get_config_info(cls) -> Dict[str, List[str]]:
        """Describe which config files and env overrides are in effect."""
        return {
            "existing_configs": [str(p) for p in cls.DEFAULT_PATHS if p.is_file()],
            "env_overrides": [
                f"{name}={os.environ[name]}"
                for name in cls.ENV_OVERRIDES
                if os.environ.get(name)
            ],
            "default_paths": [str(p) for p in cls.DEFAULT_PATHS],
        }
