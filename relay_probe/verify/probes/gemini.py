"""Google Generative Language API prober."""

from typing import Any, Dict, Optional

from relay_probe.verify.models import ProviderProtocol
from relay_probe.verify.probes.base import PING_TEXT, Prober

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_API_VERSION = "v1beta"


def normalize_base_url(base_url: str) -> str:
  """Normalize a custom Google endpoint.

  Trailing slashes are stripped and ``/v1beta`` is appended unless the URL
  already names a ``/v1`` or ``/v1beta`` segment. This is a best-effort
  guess at how third-party relays lay out their paths, not a guaranteed
  URL transform.
  """
  clean_base = base_url.strip().rstrip("/")
  if "/v1" not in clean_base and "/v1beta" not in clean_base:
    clean_base = f"{clean_base}/{DEFAULT_API_VERSION}"
  return clean_base


class GeminiProber(Prober):
  """Probes credentials with a one-token generateContent call.

  Without an override the official endpoint is used and the credential is
  sent in the ``x-goog-api-key`` header. With an override the request goes
  straight to the relay with the credential in the ``key`` query parameter,
  which is what relays mimicking the public REST API expect.
  """

  protocol = ProviderProtocol.GOOGLE

  def _build_url(self, model: str, base_url: str) -> str:
    base = normalize_base_url(base_url) if base_url else DEFAULT_BASE_URL
    return f"{base}/models/{model}:generateContent"

  def _build_headers(self, credential: str, base_url: str) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if not base_url:
      headers["x-goog-api-key"] = credential
    return headers

  def _build_params(self, credential: str, base_url: str) -> Optional[Dict[str, str]]:
    if base_url:
      return {"key": credential}
    return None

  def _prepare_payload(self, model: str) -> Dict[str, Any]:
    return {
      "contents": [{"parts": [{"text": PING_TEXT}]}],
      "generationConfig": {"maxOutputTokens": 1},
    }
