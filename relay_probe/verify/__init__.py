"""Credential verification against LLM provider endpoints."""

from .concurrent import CONCURRENCY_LIMIT, VerificationRun, VerificationRunner
from .exceptions import (
    ConfigurationError,
    HTTPStatusError,
    NetworkError,
    ProbeError,
    RelayProbeError,
    TimeoutError,
    UnknownTargetError,
)
from .factory import ProberFactory
from .models import (
    Job,
    ProbeOutcome,
    ProviderProtocol,
    RunState,
    Stats,
    TargetConfig,
    VerificationStatus,
    mask_key,
    parse_credentials,
)
from .probes import Prober
from .targets import Target, TargetRegistry

__all__ = [
    "CONCURRENCY_LIMIT",
    "VerificationRun",
    "VerificationRunner",
    "RelayProbeError",
    "ConfigurationError",
    "HTTPStatusError",
    "NetworkError",
    "ProbeError",
    "TimeoutError",
    "UnknownTargetError",
    "ProberFactory",
    "Job",
    "ProbeOutcome",
    "ProviderProtocol",
    "RunState",
    "Stats",
    "TargetConfig",
    "VerificationStatus",
    "mask_key",
    "parse_credentials",
    "Prober",
    "Target",
    "TargetRegistry",
]
