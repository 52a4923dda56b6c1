"""Data models for credential verification runs."""

import math
import time
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from .exceptions import ConfigurationError


class ProviderProtocol(str, Enum):
    """Wire protocol spoken by the endpoint a credential is probed against."""

    GOOGLE = "GOOGLE"
    OPENAI = "OPENAI"

    @classmethod
    def parse(cls, value: Any) -> "ProviderProtocol":
        """Parse a protocol from an enum member or a loose string.

        Accepts ``google``/``gemini`` and ``openai``/``openai_compatible``
        regardless of case.
        """
        if isinstance(value, cls):
            return value

        aliases = {
            "google": cls.GOOGLE,
            "gemini": cls.GOOGLE,
            "openai": cls.OPENAI,
            "openai_compatible": cls.OPENAI,
            "openai-compatible": cls.OPENAI,
        }
        key = str(value).strip().lower()
        if key not in aliases:
            raise ConfigurationError(
                f"Unknown protocol '{value}'. Expected one of: google, openai",
                field="protocol",
            )
        return aliases[key]


class VerificationStatus(str, Enum):
    """Lifecycle status of a single probe outcome."""

    IDLE = "IDLE"
    PENDING = "PENDING"
    VALID = "VALID"
    INVALID = "INVALID"

    @property
    def is_terminal(self) -> bool:
        return self in (VerificationStatus.VALID, VerificationStatus.INVALID)


def mask_key(credential: str) -> str:
    """Return the display form of a credential.

    Credentials of eight characters or fewer are replaced entirely, longer
    ones keep their first and last four characters.
    """
    if len(credential) <= 8:
        return "****"
    return f"{credential[:4]}...{credential[-4:]}"


def parse_credentials(text: Optional[str]) -> list[str]:
    """Split raw multi-line credential text into trimmed, non-blank lines."""
    if not text:
        return []
    return [line.strip() for line in text.splitlines() if line.strip()]


def _now_ms() -> int:
    return int(time.time() * 1000)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up."""
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class TargetConfig:
    """Immutable snapshot of the endpoint a run verifies against."""

    protocol: ProviderProtocol = ProviderProtocol.GOOGLE
    model: str = "gemini-1.5-flash"
    base_url: str = ""

    def __post_init__(self):
        object.__setattr__(self, "protocol", ProviderProtocol.parse(self.protocol))
        object.__setattr__(self, "base_url", (self.base_url or "").strip())
        object.__setattr__(self, "model", (self.model or "").strip())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TargetConfig":
        """Create a TargetConfig from a configuration dictionary.

        Raises:
          ConfigurationError: If the protocol is unknown
        """
        kwargs = {}
        if "protocol" in data:
            kwargs["protocol"] = ProviderProtocol.parse(data["protocol"])
        if "model" in data:
            kwargs["model"] = data["model"]
        if "base_url" in data:
            kwargs["base_url"] = data["base_url"] or ""
        return cls(**kwargs)

    def with_changes(self, **changes: Any) -> "TargetConfig":
        """Return a new snapshot with the given fields replaced."""
        return replace(self, **changes)

    @property
    def display_base_url(self) -> str:
        return self.base_url or "Default"


@dataclass(frozen=True)
class Job:
    """One queued unit of work: a single credential to probe."""

    id: str
    credential: str = field(repr=False)
    model: str
    index: int = 0

    @classmethod
    def build_all(
        cls, credentials: list[str], model: str, target_id: str = "adhoc"
    ) -> list["Job"]:
        """Create jobs in input order with run-unique identifiers."""
        stamp = _now_ms()
        return [
            cls(
                id=f"job-{target_id}-{index}-{stamp}",
                credential=credential,
                model=model,
                index=index,
            )
            for index, credential in enumerate(credentials)
        ]


@dataclass
class ProbeOutcome:
    """Result record for one job, pending until its probe completes."""

    id: str
    credential: str = field(repr=False)
    credential_masked: str
    status: VerificationStatus
    latency_ms: int
    model: str
    error: Optional[str] = None
    completed_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate outcome fields after initialization."""
        if self.latency_ms < 0:
            raise ValueError("Latency cannot be negative")

    @classmethod
    def pending(cls, job: Job) -> "ProbeOutcome":
        """Build the placeholder shown for a job before its probe resolves."""
        return cls(
            id=job.id,
            credential=job.credential,
            credential_masked=mask_key(job.credential),
            status=VerificationStatus.PENDING,
            latency_ms=0,
            model=job.model,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


@dataclass
class Stats:
    """Aggregate counters over a run's outcomes."""

    total: int = 0
    tested: int = 0
    valid: int = 0
    invalid: int = 0
    avg_latency_ms: int = 0


@dataclass
class RunState:
    """Per-target aggregate of one verification run.

    ``results`` stays index-aligned with the input credential order for the
    whole run; completions only mutate the matching entry in place.
    """

    results: list[ProbeOutcome] = field(default_factory=list)
    is_running: bool = False
    completed_count: int = 0
    total_count: int = 0
    last_run_timestamp: Optional[datetime] = None

    @classmethod
    def start(cls, jobs: list[Job]) -> "RunState":
        return cls(
            results=[ProbeOutcome.pending(job) for job in jobs],
            is_running=True,
            completed_count=0,
            total_count=len(jobs),
        )

    @property
    def progress(self) -> int:
        if self.total_count == 0:
            return 0
        return round_half_up(self.completed_count / self.total_count * 100)

    def index_of(self, job_id: str) -> int:
        """Locate the slot for a job by identity.

        Raises:
          KeyError: If no outcome carries the given id
        """
        for index, outcome in enumerate(self.results):
            if outcome.id == job_id:
                return index
        raise KeyError(job_id)

    def stats(self) -> Stats:
        valid = [r for r in self.results if r.status == VerificationStatus.VALID]
        invalid = [r for r in self.results if r.status == VerificationStatus.INVALID]
        total_latency = sum(r.latency_ms for r in valid)
        return Stats(
            total=len(self.results),
            tested=len(valid) + len(invalid),
            valid=len(valid),
            invalid=len(invalid),
            avg_latency_ms=round_half_up(total_latency / len(valid)) if valid else 0,
        )
