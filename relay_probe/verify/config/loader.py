"""Target file loader with YAML parsing and environment variable resolution."""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from ..exceptions import ConfigurationError
from .models import TargetsFile

DEFAULT_CONFIG_NAME = "default-targets"


class ConfigLoader:
  """Loads target files from a configuration directory.

  Target files are YAML documents with an optional ``defaults`` section and a
  ``targets`` mapping. ``${VAR}`` patterns anywhere in the document are
  replaced with environment variables, so credentials need not be written
  to disk.
  """

  def __init__(self, config_dir: Path):
    """Initialize ConfigLoader with configuration directory.

    Args:
      config_dir: Path to directory containing target files
    """
    self.config_dir = Path(config_dir)

  def load_config(self, config_name: str = DEFAULT_CONFIG_NAME) -> TargetsFile:
    """Load a target file.

    Args:
      config_name: Name of the file without .yaml/.yml extension

    Returns:
      TargetsFile with resolved environment variables

    Raises:
      ConfigurationError: If file not found, invalid YAML, or environment variables missing
    """
    config_file = self.get_config_file_path(config_name)

    try:
      with open(config_file, 'r', encoding='utf-8') as f:
        config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
      raise ConfigurationError(
        f"Invalid YAML in configuration file: {e}",
        config_file=str(config_file)
      )
    except OSError as e:
      raise ConfigurationError(
        f"Error reading configuration file: {e}",
        config_file=str(config_file)
      )

    if config_dict is None:
      raise ConfigurationError(
        "Configuration file is empty",
        config_file=str(config_file)
      )

    if not isinstance(config_dict, dict):
      raise ConfigurationError(
        "Configuration file must contain a YAML dictionary",
        config_file=str(config_file)
      )

    try:
      resolved_config = self._resolve_environment_variables(config_dict)
    except ConfigurationError as e:
      e.config_file = str(config_file)
      raise e

    return TargetsFile.from_dict(resolved_config, str(config_file), self.config_dir)

  def list_available_configs(self) -> list[str]:
    """List all target files in the config directory.

    Returns:
      Sorted file names without extension

    Raises:
      ConfigurationError: If config directory doesn't exist
    """
    if not self.config_dir.exists():
      raise ConfigurationError(
        f"Configuration directory not found: {self.config_dir}"
      )

    if not self.config_dir.is_dir():
      raise ConfigurationError(
        f"Configuration path is not a directory: {self.config_dir}"
      )

    config_files = set()
    for pattern in ("*.yaml", "*.yml"):
      for file_path in self.config_dir.glob(pattern):
        if file_path.is_file():
          config_files.add(file_path.stem)

    return sorted(config_files)

  def get_config_file_path(self, config_name: str) -> Path:
    """Get the full path to a target file, preferring .yaml over .yml.

    Raises:
      ConfigurationError: If file doesn't exist
    """
    yaml_path = self.config_dir / f"{config_name}.yaml"
    yml_path = self.config_dir / f"{config_name}.yml"

    if yaml_path.exists():
      return yaml_path
    elif yml_path.exists():
      return yml_path
    else:
      raise ConfigurationError(
        f"Configuration file not found: {config_name}.yaml or {config_name}.yml",
        config_file=str(yaml_path)
      )

  def _resolve_environment_variables(self, config_dict: dict[str, Any]) -> dict[str, Any]:
    """Resolve ${VAR} patterns in configuration with environment variables.

    Raises:
      ConfigurationError: If a referenced environment variable is missing
    """
    def resolve_value(value: Any, path: str = "") -> Any:
      if isinstance(value, str):
        matches = re.findall(r'\$\{([^}]+)\}', value)

        resolved_value = value
        for var_name in matches:
          env_value = os.getenv(var_name)
          if env_value is None:
            error_path = f" at {path}" if path else ""
            raise ConfigurationError(
              f"Environment variable '{var_name}' is not set{error_path}",
              field=path or None
            )
          resolved_value = resolved_value.replace(f"${{{var_name}}}", env_value)

        return resolved_value

      elif isinstance(value, dict):
        return {
          key: resolve_value(val, f"{path}.{key}" if path else str(key))
          for key, val in value.items()
        }

      elif isinstance(value, list):
        return [
          resolve_value(item, f"{path}[{i}]" if path else f"[{i}]")
          for i, item in enumerate(value)
        ]

      return value

    return resolve_value(config_dict)
