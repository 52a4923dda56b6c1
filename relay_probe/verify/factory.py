"""Prober factory mapping protocols to prober instances."""

import logging
from typing import Dict, Optional, Type

from .exceptions import ConfigurationError
from .http.client import HTTPClient
from .models import ProbeOutcome, ProviderProtocol
from .probes.base import Prober
from .probes.gemini import GeminiProber
from .probes.openai import OpenAIProber

logger = logging.getLogger(__name__)


class ProberFactory:
  """Factory for creating and caching one prober per protocol.

  All probers share the factory's HTTP client, so a run reuses one
  connection pool regardless of how many credentials it checks.
  """

  def __init__(self, http_client: HTTPClient):
    """Initialize the prober factory with an HTTP client.

    Args:
      http_client: HTTP client instance shared across all probers
    """
    self.http_client = http_client
    self._probers: Dict[ProviderProtocol, Prober] = {}

    self._prober_registry: Dict[ProviderProtocol, Type[Prober]] = {
      ProviderProtocol.GOOGLE: GeminiProber,
      ProviderProtocol.OPENAI: OpenAIProber,
    }

    logger.debug(f"ProberFactory initialized with {len(self._prober_registry)} protocols")

  def register_prober(
    self,
    protocol: ProviderProtocol,
    prober_class: Type[Prober],
    replace: bool = False
  ) -> None:
    """Register a prober class for a protocol.

    Args:
      protocol: Protocol the prober handles
      prober_class: Prober subclass to instantiate
      replace: Allow replacing an existing registration

    Raises:
      ConfigurationError: If prober_class is not a Prober subclass or the
                         protocol is already registered
    """
    if not isinstance(prober_class, type) or not issubclass(prober_class, Prober):
      raise ConfigurationError(
        f"Prober class for '{protocol.value}' must be a subclass of Prober",
        field=f"prober_registry.{protocol.value}"
      )

    if protocol in self._prober_registry and not replace:
      raise ConfigurationError(
        f"Protocol '{protocol.value}' is already registered",
        field=f"prober_registry.{protocol.value}"
      )

    self._prober_registry[protocol] = prober_class
    self._probers.pop(protocol, None)
    logger.info(f"Registered prober for protocol: {protocol.value}")

  def get_prober(self, protocol: ProviderProtocol) -> Prober:
    """Return the (cached) prober for a protocol.

    Raises:
      ConfigurationError: If no prober is registered for the protocol
    """
    protocol = ProviderProtocol.parse(protocol)

    if protocol not in self._probers:
      if protocol not in self._prober_registry:
        raise ConfigurationError(
          f"No prober registered for protocol '{protocol.value}'",
          field="protocol"
        )
      self._probers[protocol] = self._prober_registry[protocol](self.http_client)
      logger.debug(f"Created prober instance: {protocol.value}")

    return self._probers[protocol]

  async def probe(
    self,
    credential: str,
    model: str,
    job_id: str,
    base_url: Optional[str],
    protocol: ProviderProtocol
  ) -> ProbeOutcome:
    """Probe one credential, dispatching once on the protocol."""
    return await self.get_prober(protocol).probe(credential, model, job_id, base_url)

  def __repr__(self) -> str:
    return f"ProberFactory(protocols={[p.value for p in self._prober_registry]})"
