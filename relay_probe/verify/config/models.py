"""Target file data models."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..exceptions import ConfigurationError
from ..models import TargetConfig, parse_credentials


@dataclass
class TargetDefinition:
    """A named target as declared in a target file."""

    name: str
    config: TargetConfig
    api_keys_text: str = ""

    @property
    def credential_count(self) -> int:
        return len(parse_credentials(self.api_keys_text))


@dataclass
class TargetsFile:
    """Complete target file with defaults and named targets."""

    defaults: dict[str, Any]
    targets: dict[str, TargetDefinition] = field(default_factory=dict)

    @classmethod
    def from_dict(
        cls,
        config_dict: dict[str, Any],
        config_file: str = "",
        base_dir: Optional[Path] = None,
    ) -> "TargetsFile":
        """Create a TargetsFile from an already env-resolved dictionary.

        Args:
          config_dict: Configuration dictionary
          config_file: Source file path for error reporting
          base_dir: Directory that relative ``api_keys_file`` paths resolve against

        Raises:
          ConfigurationError: If the structure is invalid
        """
        defaults = config_dict.get("defaults", {}) or {}
        if not isinstance(defaults, dict):
            raise ConfigurationError(
                "Defaults section must be a dictionary",
                config_file=config_file,
                field="defaults",
            )

        targets_dict = config_dict.get("targets", {})
        if not isinstance(targets_dict, dict):
            raise ConfigurationError(
                "Targets section must be a dictionary",
                config_file=config_file,
                field="targets",
            )

        if not targets_dict:
            raise ConfigurationError(
                "At least one target must be configured",
                config_file=config_file,
                field="targets",
            )

        targets = {}
        for target_name, target_config in targets_dict.items():
            if not isinstance(target_config, dict):
                raise ConfigurationError(
                    f"Target '{target_name}' configuration must be a dictionary",
                    config_file=config_file,
                    field=f"targets.{target_name}",
                )

            merged = {**defaults, **target_config}
            try:
                config = TargetConfig.from_dict(merged)
            except ConfigurationError as e:
                raise ConfigurationError(
                    f"Invalid configuration for target '{target_name}': {e}",
                    config_file=config_file,
                    field=f"targets.{target_name}.protocol",
                )

            targets[str(target_name)] = TargetDefinition(
                name=str(target_name),
                config=config,
                api_keys_text=cls._collect_api_keys(
                    merged, str(target_name), config_file, base_dir
                ),
            )

        return cls(defaults=defaults, targets=targets)

    @staticmethod
    def _collect_api_keys(
        target_config: dict[str, Any],
        target_name: str,
        config_file: str,
        base_dir: Optional[Path],
    ) -> str:
        """Gather inline keys and an optional keys file into one text block."""
        parts = []

        inline = target_config.get("api_keys")
        if isinstance(inline, list):
            parts.extend(str(item) for item in inline if item is not None)
        elif isinstance(inline, str):
            parts.append(inline)
        elif inline is not None:
            raise ConfigurationError(
                f"Target '{target_name}' api_keys must be a string or a list",
                config_file=config_file,
                field=f"targets.{target_name}.api_keys",
            )

        keys_file = target_config.get("api_keys_file")
        if keys_file:
            path = Path(keys_file)
            if not path.is_absolute() and base_dir is not None:
                path = base_dir / path
            try:
                parts.append(path.read_text(encoding="utf-8"))
            except OSError as e:
                raise ConfigurationError(
                    f"Cannot read keys file for target '{target_name}': {e}",
                    config_file=config_file,
                    field=f"targets.{target_name}.api_keys_file",
                )

        return "\n".join(parts)
