"""Structured logging support for credential verification."""

import logging
import os
import sys
from typing import Any, Dict, Optional

import structlog

from .models import mask_key


class SensitiveDataFilter:
  """Filter to prevent credentials from being logged in clear text."""

  SENSITIVE_KEYS = {
    "api_key", "api_token", "authorization", "x_goog_api_key", "x_api_key",
    "openai_api_key", "gemini_api_key", "google_api_key",
  }

  SENSITIVE_PARTS = {
    "key", "token", "secret", "password", "bearer", "auth", "credential",
  }

  @classmethod
  def filter_sensitive_data(cls, data: Any) -> Any:
    """Recursively filter sensitive data from dictionaries and other structures.

    Args:
      data: Data structure to filter

    Returns:
      Filtered data structure with sensitive values replaced
    """
    if isinstance(data, dict):
      filtered = {}
      for key, value in data.items():
        if isinstance(key, str) and cls._is_sensitive_key(key):
          filtered[key] = cls._mask_sensitive_value(value)
        else:
          filtered[key] = cls.filter_sensitive_data(value)
      return filtered
    elif isinstance(data, list):
      return [cls.filter_sensitive_data(item) for item in data]
    elif isinstance(data, tuple):
      return tuple(cls.filter_sensitive_data(item) for item in data)
    else:
      return data

  @classmethod
  def _is_sensitive_key(cls, key: str) -> bool:
    """Check if a key name indicates sensitive data.

    Matching is done on whole underscore-separated words so that fields
    such as ``max_tokens`` are left alone.
    """
    key_lower = key.lower().replace("-", "_").replace(" ", "_")
    if key_lower in cls.SENSITIVE_KEYS:
      return True
    return bool(set(key_lower.split("_")) & cls.SENSITIVE_PARTS)

  @classmethod
  def _mask_sensitive_value(cls, value: Any) -> str:
    """Mask a sensitive value for logging.

    Args:
      value: Sensitive value to mask

    Returns:
      Masked representation of the value
    """
    if value is None:
      return "[NONE]"
    return mask_key(str(value))


def configure_logging(
  debug_mode: bool = False,
  log_level: Optional[str] = None,
  log_file: Optional[str] = None,
  structured: bool = True,
) -> None:
  """Configure structured logging for relay-probe.

  Args:
    debug_mode: Enable debug mode with detailed logging
    log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
    log_file: Optional file path for log output
    structured: Use structured JSON logging format
  """
  if log_level:
    level = getattr(logging, log_level.upper(), logging.INFO)
  elif debug_mode:
    level = logging.DEBUG
  else:
    level = logging.INFO

  processors = [
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    _add_process_context,
    _filter_sensitive_processor,
  ]

  if structured:
    processors.append(structlog.processors.JSONRenderer())
  else:
    processors.append(structlog.dev.ConsoleRenderer())

  structlog.configure(
    processors=processors,
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
  )

  handlers = []

  # Logs go to stderr so stdout stays clean for result tables
  console_handler = logging.StreamHandler(sys.stderr)
  console_handler.setLevel(level)
  handlers.append(console_handler)

  if log_file:
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(level)
    handlers.append(file_handler)

  logging.basicConfig(
    level=level,
    handlers=handlers,
    format="%(message)s" if structured else "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    force=True,
  )

  logging.getLogger("aiohttp").setLevel(logging.WARNING)
  logging.getLogger("asyncio").setLevel(logging.WARNING)


def _add_process_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
  """Add process information to log events."""
  event_dict["process_id"] = os.getpid()
  return event_dict


def _filter_sensitive_processor(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
  """Processor to filter sensitive data from log events."""
  return SensitiveDataFilter.filter_sensitive_data(event_dict)


class ProbeLogger:
  """Logger for probe and run events with bound context."""

  def __init__(self, name: str, protocol: Optional[str] = None):
    """Initialize probe logger with context.

    Args:
      name: Logger name
      protocol: Optional protocol name for context
    """
    self.name = name
    self.logger = structlog.get_logger(name)
    self.context: Dict[str, Any] = {}

    if protocol:
      self.context["protocol"] = protocol
      self.logger = self.logger.bind(protocol=protocol)

  def bind(self, **kwargs: Any) -> "ProbeLogger":
    """Bind additional context to the logger.

    Args:
      **kwargs: Context key-value pairs

    Returns:
      New logger instance with bound context
    """
    new_logger = ProbeLogger(self.name)
    new_logger.context = {**self.context, **kwargs}
    new_logger.logger = structlog.get_logger(self.name).bind(
      **SensitiveDataFilter.filter_sensitive_data(new_logger.context)
    )
    return new_logger

  def debug(self, message: str, **kwargs: Any) -> None:
    self.logger.debug(message, **SensitiveDataFilter.filter_sensitive_data(kwargs))

  def info(self, message: str, **kwargs: Any) -> None:
    self.logger.info(message, **SensitiveDataFilter.filter_sensitive_data(kwargs))

  def warning(self, message: str, **kwargs: Any) -> None:
    self.logger.warning(message, **SensitiveDataFilter.filter_sensitive_data(kwargs))

  def error(self, message: str, **kwargs: Any) -> None:
    self.logger.error(message, **SensitiveDataFilter.filter_sensitive_data(kwargs))

  def log_probe_request(
    self,
    method: str,
    url: str,
    model: str,
    job_id: str,
    **kwargs: Any
  ) -> None:
    """Log an outgoing probe request.

    The URL must already be free of credentials; the Google relay path
    passes the credential as a query parameter, never inside ``url``.
    """
    self.debug(
      "Probe request initiated",
      event_type="probe_request",
      method=method,
      url=url,
      model=model,
      job_id=job_id,
      **kwargs
    )

  def log_probe_outcome(
    self,
    job_id: str,
    status: str,
    latency_ms: int,
    error: Optional[str] = None,
    **kwargs: Any
  ) -> None:
    """Log the classified outcome of a probe.

    Args:
      job_id: Identifier of the probed job
      status: Terminal status name
      latency_ms: Measured latency in milliseconds
      error: Diagnostic message for invalid outcomes
      **kwargs: Additional context
    """
    context = {
      "event_type": "probe_outcome",
      "job_id": job_id,
      "status": status,
      "latency_ms": latency_ms,
      **kwargs
    }

    if error:
      context["error"] = error
      self.info("Probe rejected", **context)
    else:
      self.info("Probe accepted", **context)

  def log_run_progress(
    self,
    completed: int,
    total: int,
    progress: int,
    in_flight: int,
    **kwargs: Any
  ) -> None:
    """Log run progress for debugging.

    Args:
      completed: Number of terminal outcomes so far
      total: Number of jobs in the run
      progress: Completion percentage
      in_flight: Number of probes currently awaiting a response
      **kwargs: Additional context
    """
    self.debug(
      "Run progress",
      event_type="run_progress",
      completed=completed,
      total=total,
      progress=progress,
      in_flight=in_flight,
      **kwargs
    )


def get_probe_logger(name: str, protocol: Optional[str] = None) -> ProbeLogger:
  """Get a probe logger instance with optional protocol context.

  Args:
    name: Logger name
    protocol: Optional protocol name

  Returns:
    ProbeLogger instance
  """
  return ProbeLogger(name, protocol)
