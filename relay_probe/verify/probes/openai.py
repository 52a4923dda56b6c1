"""OpenAI-compatible chat-completions prober."""

from typing import Any, Dict

from relay_probe.verify.models import ProviderProtocol
from relay_probe.verify.probes.base import PING_TEXT, Prober

DEFAULT_BASE_URL = "https://api.openai.com/v1"


class OpenAIProber(Prober):
  """Probes credentials with a one-token chat completion.

  Works against api.openai.com and any relay exposing the same
  ``/chat/completions`` route with bearer authentication.
  """

  protocol = ProviderProtocol.OPENAI

  def _build_url(self, model: str, base_url: str) -> str:
    base = base_url.rstrip("/") or DEFAULT_BASE_URL
    return f"{base}/chat/completions"

  def _build_headers(self, credential: str, base_url: str) -> Dict[str, str]:
    return {
      "Authorization": f"Bearer {credential}",
      "Content-Type": "application/json",
    }

  def _prepare_payload(self, model: str) -> Dict[str, Any]:
    return {
      "model": model,
      "messages": [{"role": "user", "content": PING_TEXT}],
      "max_tokens": 1,
    }
