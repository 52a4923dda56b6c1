"""Unit tests for the OpenAI-compatible prober."""

import json
from unittest.mock import AsyncMock, Mock

import pytest
from aiohttp import ClientResponse

from relay_probe.verify.exceptions import NetworkError
from relay_probe.verify.http.client import HTTPClient
from relay_probe.verify.models import ProviderProtocol, VerificationStatus
from relay_probe.verify.probes.openai import DEFAULT_BASE_URL, OpenAIProber


def make_response(status=200, text="{}"):
  response = Mock(spec=ClientResponse)
  response.status = status
  response.text = AsyncMock(return_value=text)
  response.json = AsyncMock(side_effect=lambda content_type=None: json.loads(text))
  return response


@pytest.fixture
def valid_chat_response():
  """Create valid chat completion body."""
  return json.dumps({
    "id": "chatcmpl-123",
    "object": "chat.completion",
    "model": "gpt-4o-mini",
    "choices": [{"index": 0, "message": {"role": "assistant", "content": "p"}, "finish_reason": "length"}],
  })


class TestOpenAIProber:
  """Test cases for OpenAIProber."""

  @pytest.fixture
  def http_client(self):
    """Create mock HTTP client."""
    return AsyncMock(spec=HTTPClient)

  @pytest.fixture
  def prober(self, http_client):
    return OpenAIProber(http_client)

  def test_protocol(self, prober):
    assert prober.protocol is ProviderProtocol.OPENAI
    assert prober.name == "openai"

  @pytest.mark.asyncio
  async def test_default_endpoint_request(self, prober, http_client, valid_chat_response):
    """Test the request shape against the default endpoint."""
    http_client.post.return_value = make_response(200, valid_chat_response)

    outcome = await prober.probe("sk-ABCDEFGHIJKL", "gpt-4o-mini", "job-1", "")

    http_client.post.assert_awaited_once_with(
      f"{DEFAULT_BASE_URL}/chat/completions",
      json={
        "model": "gpt-4o-mini",
        "messages": [{"role": "user", "content": "ping"}],
        "max_tokens": 1,
      },
      headers={
        "Authorization": "Bearer sk-ABCDEFGHIJKL",
        "Content-Type": "application/json",
      },
      params=None,
    )
    assert outcome.status is VerificationStatus.VALID
    assert outcome.credential_masked == "sk-A...IJKL"

  @pytest.mark.asyncio
  async def test_custom_base_url_trailing_slashes(self, prober, http_client, valid_chat_response):
    """Test that trailing slashes are stripped from a relay URL."""
    http_client.post.return_value = make_response(200, valid_chat_response)

    await prober.probe("sk-ABCDEFGHIJKL", "deepseek-chat", "job-1", "https://relay.example.com/v1//")

    assert http_client.post.call_args.args[0] == "https://relay.example.com/v1/chat/completions"

  @pytest.mark.asyncio
  async def test_unauthorized(self, prober, http_client):
    """Test that a 401 is reported with status and body."""
    body = '{"error": {"message": "Incorrect API key provided", "type": "invalid_request_error"}}'
    http_client.post.return_value = make_response(401, body)

    outcome = await prober.probe("sk-bad", "gpt-4o", "job-1")

    assert outcome.status is VerificationStatus.INVALID
    assert outcome.error == f"HTTP 401: {body[:100]}"
    assert outcome.credential_masked == "****"

  @pytest.mark.asyncio
  async def test_rate_limited_is_not_retried(self, prober, http_client):
    """Test that a 429 fails the probe after a single request."""
    http_client.post.return_value = make_response(429, "rate limited")

    outcome = await prober.probe("sk-ABCDEFGHIJKL", "gpt-4o", "job-1")

    assert outcome.error == "HTTP 429: rate limited"
    assert http_client.post.await_count == 1

  @pytest.mark.asyncio
  async def test_network_error(self, prober, http_client):
    """Test that transport failures are captured as invalid outcomes."""
    http_client.post.side_effect = NetworkError("Connection failed: dns lookup failed")

    outcome = await prober.probe("sk-ABCDEFGHIJKL", "gpt-4o", "job-1")

    assert outcome.status is VerificationStatus.INVALID
    assert outcome.error == "Network error: Connection failed: dns lookup failed"
    assert outcome.latency_ms >= 0
