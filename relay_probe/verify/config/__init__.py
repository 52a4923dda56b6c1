"""Target file configuration."""

from .loader import DEFAULT_CONFIG_NAME, ConfigLoader
from .models import TargetDefinition, TargetsFile
from .validator import ConfigValidator

__all__ = [
  "DEFAULT_CONFIG_NAME",
  "ConfigLoader",
  "ConfigValidator",
  "TargetDefinition",
  "TargetsFile",
]
