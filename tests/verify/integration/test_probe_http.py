"""End-to-end probes against a local aiohttp server standing in for relays."""

import asyncio

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from relay_probe.verify.concurrent.runner import VerificationRunner
from relay_probe.verify.factory import ProberFactory
from relay_probe.verify.http.client import HTTPClient
from relay_probe.verify.models import ProviderProtocol, TargetConfig, VerificationStatus
from relay_probe.verify.targets import TargetRegistry

pytestmark = pytest.mark.integration

VALID_KEYS = {"AIzaSyRelayValid000001", "sk-relay-valid-000002"}


class RelayState:
  def __init__(self):
    self.requests = []
    self.in_flight = 0
    self.max_in_flight = 0


def build_app(relay: RelayState) -> web.Application:
  async def track(coro):
    relay.in_flight += 1
    relay.max_in_flight = max(relay.max_in_flight, relay.in_flight)
    try:
      await asyncio.sleep(0.05)
      return await coro
    finally:
      relay.in_flight -= 1

  async def generate_content(request: web.Request) -> web.Response:
    relay.requests.append(request)

    async def respond():
      body = await request.json()
      assert body["contents"][0]["parts"][0]["text"] == "ping"
      key = request.query.get("key") or request.headers.get("x-goog-api-key")
      if key not in VALID_KEYS:
        return web.json_response(
          {"error": {"code": 400, "message": "API key not valid. Please pass a valid API key."}},
          status=400,
        )
      return web.json_response({"candidates": [{"content": {"parts": [{"text": "p"}]}}]})

    return await track(respond())

  async def chat_completions(request: web.Request) -> web.Response:
    relay.requests.append(request)

    async def respond():
      token = request.headers.get("Authorization", "").removeprefix("Bearer ")
      if token == "sk-relay-html-000003":
        return web.Response(text="<html>maintenance</html>", content_type="text/html")
      if token not in VALID_KEYS:
        return web.json_response({"error": {"message": "invalid token"}}, status=401)
      return web.json_response({"choices": [{"message": {"role": "assistant", "content": "p"}}]})

    return await track(respond())

  app = web.Application()
  app.router.add_post("/v1beta/models/{model_action}", generate_content)
  app.router.add_post("/v1/chat/completions", chat_completions)
  return app


@pytest.fixture
def relay():
  return RelayState()


@pytest_asyncio.fixture
async def relay_server(relay):
  server = TestServer(build_app(relay))
  await server.start_server()
  yield server
  await server.close()


@pytest_asyncio.fixture
async def http_client():
  client = HTTPClient(timeout=5)
  yield client
  await client.close()


class TestGoogleRelay:
  """Google protocol through a custom base URL."""

  @pytest.mark.asyncio
  async def test_mixed_batch(self, relay, relay_server, http_client):
    """Five keys, two accepted by the relay, three garbage."""
    keys = [
      "AIzaSyRelayValid000001",
      "garbage-one",
      "AIzaSyRelayValid000001",
      "not-a-key-at-all",
      "x",
    ]
    runner = VerificationRunner(ProberFactory(http_client))
    config = TargetConfig(
      protocol=ProviderProtocol.GOOGLE,
      model="gemini-1.5-flash",
      base_url=str(relay_server.make_url("/")),
    )

    state = await runner.run(config, "\n".join(keys), "relay")

    statuses = [r.status for r in state.results]
    assert statuses.count(VerificationStatus.VALID) == 2
    assert statuses.count(VerificationStatus.INVALID) == 3
    assert statuses[0] is VerificationStatus.VALID
    assert statuses[2] is VerificationStatus.VALID
    for outcome in state.results:
      assert outcome.latency_ms >= 0
      if outcome.status is VerificationStatus.INVALID:
        assert outcome.error.startswith("HTTP 400: ")

    assert len(relay.requests) == 5
    for request in relay.requests:
      assert request.path == "/v1beta/models/gemini-1.5-flash:generateContent"
      assert "key" in request.query
      assert "x-goog-api-key" not in request.headers
    assert relay.max_in_flight <= 3
    assert state.results[4].credential_masked == "****"


class TestOpenAIRelay:
  """OpenAI-compatible protocol through a relay."""

  @pytest.mark.asyncio
  async def test_registry_run(self, relay, relay_server, http_client):
    registry = TargetRegistry(VerificationRunner(ProberFactory(http_client)))
    target = registry.add_target(
      name="relay",
      config=TargetConfig(
        protocol=ProviderProtocol.OPENAI,
        model="deepseek-chat",
        base_url=str(relay_server.make_url("/v1")) + "/",
      ),
      api_keys_text="sk-relay-valid-000002\nsk-relay-wrong-00001\nsk-relay-html-000003\n",
    )

    state = await registry.run_target(target.id)

    valid, wrong, html = state.results
    assert valid.status is VerificationStatus.VALID
    assert valid.error is None
    assert wrong.status is VerificationStatus.INVALID
    assert wrong.error == 'HTTP 401: {"error": {"message": "invalid token"}}'
    assert html.status is VerificationStatus.INVALID
    assert html.error.startswith("Invalid JSON response")
    assert target.status is VerificationStatus.VALID
    assert all(request.path == "/v1/chat/completions" for request in relay.requests)


class TestUnreachable:

  @pytest.mark.asyncio
  async def test_connection_failure_is_invalid(self, http_client):
    runner = VerificationRunner(ProberFactory(http_client))
    config = TargetConfig(protocol=ProviderProtocol.OPENAI, base_url="http://127.0.0.1:9/v1")

    state = await runner.run(config, "sk-unreachable-0001")

    outcome = state.results[0]
    assert outcome.status is VerificationStatus.INVALID
    assert outcome.error
