"""Configuration loader with YAML parsing and environment variable substitution."""

import yaml
import os
import re
from pathlib import Path
from typing import Any, Iterable, Optional

import paramiko
from paramiko.pkey import UnknownKeyType

from ..errors import ConfigError
from .models import ExporterConfig

ENV_PLACEHOLDER = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


class ConfigLoader:
    """Load and validate exporter configuration."""

    @staticmethod
    def load_from_file(
        config_path: str,
        valid_collectors: Optional[Iterable[str]] = None,
        builtin_interface_metrics: Optional[Iterable[str]] = None
    ) -> ExporterConfig:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file
            valid_collectors: Collector names profiles may enable; None skips the check
            builtin_interface_metrics: Names interface metric keys must not reuse; None skips the check

        Returns:
            ExporterConfig: Validated configuration object

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
            pydantic.ValidationError: If configuration validation fails
            ConfigError: If an SSH key, collector name or interface metric key is invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        raw_config = ConfigLoader._substitute_env_vars(raw_config)

        config = ExporterConfig(**raw_config)

        for name, profile in config.configs.items():
            if profile.ssh_key:
                ConfigLoader._check_ssh_key(name, profile.ssh_key)

        if valid_collectors is not None:
            config.check_collectors(list(valid_collectors))

        if builtin_interface_metrics is not None:
            config.check_interface_metric_keys(builtin_interface_metrics)

        return config

    @staticmethod
    def _check_ssh_key(profile_name: str, key_path: str) -> None:
        """
        Make sure the private key of a profile can be read and parsed.

        Raises:
            ConfigError: If the file is unreadable or not a supported private key
        """
        try:
            paramiko.PKey.from_path(key_path)
        except OSError as e:
            raise ConfigError(
                f'could not open ssh_key "{key_path}" in "{profile_name}" configuration: {e}'
            ) from e
        except (paramiko.SSHException, UnknownKeyType, TypeError, ValueError) as e:
            raise ConfigError(f'invalid ssh_key "{key_path}" in "{profile_name}" configuration: {e}') from e

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """
        Replace ${VAR} and ${VAR:-default} in every string of the document.

        Unset variables without a default become empty strings, which the
        profile validators then report (e.g. "missing password or ssh_key").
        """
        if isinstance(obj, str):
            return ENV_PLACEHOLDER.sub(lambda m: os.getenv(m.group(1), m.group(2) or ''), obj)
        if isinstance(obj, dict):
            return {key: ConfigLoader._substitute_env_vars(value) for key, value in obj.items()}
        if isinstance(obj, list):
            return [ConfigLoader._substitute_env_vars(item) for item in obj]
        return obj
