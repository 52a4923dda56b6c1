"""Target configuration validator."""

from urllib.parse import urlparse

from ..models import TargetConfig
from .models import TargetDefinition, TargetsFile


class ConfigValidator:
  """Validates target configurations before a run.

  Errors make a target unusable; warnings (such as a target with no
  credentials) are collected separately in ``self.warnings``.
  """

  def __init__(self):
    """Initialize ConfigValidator."""
    self.validation_errors: list[str] = []
    self.warnings: list[str] = []

  def validate_config(self, targets_file: TargetsFile) -> list[str]:
    """Validate every target in a target file, return list of errors."""
    self.validation_errors = []
    self.warnings = []

    for target_name, definition in targets_file.targets.items():
      self._validate_definition(target_name, definition)

    return self.validation_errors

  def validate_target(self, target_name: str, config: TargetConfig) -> list[str]:
    """Validate a single configuration snapshot, return list of errors."""
    errors = []

    if not config.model:
      errors.append(f"Target '{target_name}' model cannot be empty")

    if config.base_url:
      parsed = urlparse(config.base_url)
      if parsed.scheme not in ("http", "https"):
        errors.append(
          f"Target '{target_name}' base_url must start with http:// or https://"
        )
      elif not parsed.netloc:
        errors.append(f"Target '{target_name}' base_url must include a host")

    return errors

  def _validate_definition(self, target_name: str, definition: TargetDefinition) -> None:
    self.validation_errors.extend(self.validate_target(target_name, definition.config))

    if definition.credential_count == 0:
      self.warnings.append(f"Target '{target_name}' has no credentials and will be skipped")
