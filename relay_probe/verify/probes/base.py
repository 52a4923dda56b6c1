"""Abstract base class for credential probers."""

import asyncio
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from aiohttp import ClientError, ClientResponse

from relay_probe.verify.exceptions import (
  HTTPStatusError,
  NetworkError,
  ProbeError,
  TimeoutError,
)
from relay_probe.verify.http.client import HTTPClient
from relay_probe.verify.logging import get_probe_logger
from relay_probe.verify.models import (
  ProbeOutcome,
  ProviderProtocol,
  VerificationStatus,
  mask_key,
  round_half_up,
)

PING_TEXT = "ping"
UNKNOWN_ERROR = "Unknown error"


class Prober(ABC):
  """Abstract base class for all protocol probers.

  A prober sends exactly one minimal-cost request per credential and turns
  whatever happens into a ProbeOutcome. ``probe`` never raises for request
  failures; every error becomes an INVALID outcome carrying a diagnostic
  message and the measured latency. Subclasses only describe the request.
  """

  protocol: ProviderProtocol

  def __init__(self, http_client: HTTPClient):
    """Initialize the prober with an HTTP client.

    Args:
      http_client: HTTP client for making probe requests
    """
    self.http_client = http_client
    self.name = self.protocol.value.lower()
    self.logger = get_probe_logger(type(self).__module__, self.name)

  async def probe(
    self,
    credential: str,
    model: str,
    job_id: str,
    base_url: Optional[str] = None
  ) -> ProbeOutcome:
    """Probe a single credential against the endpoint.

    Args:
      credential: Secret to test
      model: Model identifier to address
      job_id: Identifier copied into the outcome
      base_url: Optional alternate endpoint

    Returns:
      Terminal ProbeOutcome (VALID or INVALID)
    """
    base_url = (base_url or "").strip()
    start_time = time.perf_counter()

    try:
      await self._send(credential, model, job_id, base_url)
    except Exception as e:
      latency_ms = self._measure_latency(start_time)
      message = self._describe_error(e)
      self.logger.log_probe_outcome(
        job_id=job_id,
        status=VerificationStatus.INVALID.value,
        latency_ms=latency_ms,
        error=message,
        model=model,
        error_type=type(e).__name__,
      )
      return self._build_outcome(
        job_id, credential, model, VerificationStatus.INVALID, latency_ms, message
      )

    latency_ms = self._measure_latency(start_time)
    self.logger.log_probe_outcome(
      job_id=job_id,
      status=VerificationStatus.VALID.value,
      latency_ms=latency_ms,
      model=model,
    )
    return self._build_outcome(
      job_id, credential, model, VerificationStatus.VALID, latency_ms
    )

  async def _send(self, credential: str, model: str, job_id: str, base_url: str) -> Any:
    """Issue the probe request and return the parsed response body.

    Raises:
      HTTPStatusError: For non-success statuses
      ProbeError: For unparseable success bodies
      NetworkError: For transport failures
      TimeoutError: For request timeouts
    """
    url = self._build_url(model, base_url)
    payload = self._prepare_payload(model)

    self.logger.log_probe_request(
      method="POST",
      url=url,
      model=model,
      job_id=job_id,
      custom_endpoint=bool(base_url),
    )

    response = await self.http_client.post(
      url,
      json=payload,
      headers=self._build_headers(credential, base_url),
      params=self._build_params(credential, base_url),
    )
    return await self._read_response(response)

  async def _read_response(self, response: ClientResponse) -> Any:
    """Classify the HTTP response; success requires 2xx and a JSON body.

    The response is always released, so a failed body read does not keep
    its connection out of the pool.
    """
    try:
      if not 200 <= response.status < 300:
        try:
          body = await response.text()
        except Exception:
          body = UNKNOWN_ERROR
        raise HTTPStatusError(response.status, body)

      try:
        data = await response.json(content_type=None)
      except asyncio.TimeoutError as e:
        raise TimeoutError(f"Request timeout: {str(e) or 'response body not received in time'}")
      except ClientError as e:
        raise NetworkError(f"Reading response failed: {str(e)}", e)
      except ValueError as e:
        raise ProbeError(self.name, f"Invalid JSON response: {e}", e)
    finally:
      response.release()

    if data is None:
      raise ProbeError(self.name, "Empty response body")
    return data

  @abstractmethod
  def _build_url(self, model: str, base_url: str) -> str:
    """Return the full probe URL for the model and optional override."""

  @abstractmethod
  def _build_headers(self, credential: str, base_url: str) -> Dict[str, str]:
    """Return request headers, including any credential header."""

  @abstractmethod
  def _prepare_payload(self, model: str) -> Dict[str, Any]:
    """Return the minimal JSON request body."""

  def _build_params(self, credential: str, base_url: str) -> Optional[Dict[str, str]]:
    """Return query parameters; none by default."""
    return None

  def _describe_error(self, error: Exception) -> str:
    """Turn an exception into the diagnostic stored on the outcome."""
    message = str(error).strip()
    return message or UNKNOWN_ERROR

  def _measure_latency(self, start_time: float) -> int:
    """Calculate elapsed time in whole milliseconds.

    Args:
      start_time: Start time from time.perf_counter()
    """
    return max(0, round_half_up((time.perf_counter() - start_time) * 1000))

  def _build_outcome(
    self,
    job_id: str,
    credential: str,
    model: str,
    status: VerificationStatus,
    latency_ms: int,
    error: Optional[str] = None
  ) -> ProbeOutcome:
    return ProbeOutcome(
      id=job_id,
      credential=credential,
      credential_masked=mask_key(credential),
      status=status,
      latency_ms=latency_ms,
      model=model,
      error=error,
      completed_at=datetime.now(),
    )

  def __str__(self) -> str:
    return f"{self.__class__.__name__}(protocol='{self.protocol.value}')"
