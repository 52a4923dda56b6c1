"""Shared fixtures for verification tests."""

import asyncio
import time
from datetime import datetime

import pytest

from relay_probe.verify.models import ProbeOutcome, VerificationStatus, mask_key


class FakeFactory:
  """Stands in for ProberFactory; keys starting with ``bad`` are rejected."""

  def __init__(self, delay=0.0, delays=None, raise_for=()):
    self.delay = delay
    self.delays = delays or {}
    self.raise_for = set(raise_for)
    self.calls = []
    self.started = {}
    self.in_flight = 0
    self.max_in_flight = 0

  async def probe(self, credential, model, job_id, base_url, protocol):
    self.calls.append((credential, model, job_id, base_url, protocol))
    self.started[credential] = time.perf_counter()
    self.in_flight += 1
    self.max_in_flight = max(self.max_in_flight, self.in_flight)
    try:
      await asyncio.sleep(self.delays.get(credential, self.delay))
    finally:
      self.in_flight -= 1

    if credential in self.raise_for:
      raise RuntimeError("prober exploded")

    valid = not credential.startswith("bad")
    return ProbeOutcome(
      id=job_id,
      credential=credential,
      credential_masked=mask_key(credential),
      status=VerificationStatus.VALID if valid else VerificationStatus.INVALID,
      latency_ms=int(self.delays.get(credential, self.delay) * 1000),
      model=model,
      error=None if valid else "HTTP 400: bad key",
      completed_at=datetime.now(),
    )


@pytest.fixture
def make_factory():
  """Build FakeFactory instances standing in for ProberFactory."""
  return FakeFactory
