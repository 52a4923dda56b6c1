"""HTTP client with connection pooling for probe requests."""

import asyncio
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientResponse, ClientTimeout, TCPConnector
from aiohttp.client_exceptions import ClientConnectorError, ClientError

from relay_probe.verify.exceptions import NetworkError, TimeoutError


class HTTPClient:
  """HTTP client with connection pooling.

  Every request is attempted exactly once; a failed probe is reported,
  never retried.
  """

  def __init__(
    self,
    max_connections: int = 100,
    timeout: float = 30
  ):
    """Initialize HTTP client with connection pooling.

    Args:
      max_connections: Maximum number of connections in the pool
      timeout: Total request timeout in seconds
    """
    self.max_connections = max_connections
    self.timeout = timeout
    self.session: Optional[aiohttp.ClientSession] = None

  async def _get_session(self) -> aiohttp.ClientSession:
    """Get or create the aiohttp session.

    Returns:
      Configured ClientSession instance
    """
    if self.session is None or self.session.closed:
      connector = TCPConnector(limit=self.max_connections)
      timeout = ClientTimeout(total=self.timeout)

      self.session = aiohttp.ClientSession(
        connector=connector,
        timeout=timeout
      )

    return self.session

  async def post(
    self,
    url: str,
    json: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    params: Optional[Dict[str, Any]] = None,
    **kwargs: Any
  ) -> ClientResponse:
    """Make a single POST request.

    Args:
      url: Request URL
      json: JSON data to send in request body
      headers: HTTP headers
      params: Query parameters
      **kwargs: Additional arguments passed to aiohttp

    Returns:
      HTTP response; the caller reads the body

    Raises:
      NetworkError: For network-related errors
      TimeoutError: For timeout errors
    """
    return await self._make_request(
      "POST",
      url,
      json=json,
      headers=headers,
      params=params,
      **kwargs
    )

  async def _make_request(
    self,
    method: str,
    url: str,
    **kwargs: Any
  ) -> ClientResponse:
    """Make HTTP request using the session.

    Raises:
      NetworkError: For network-related errors
      TimeoutError: For timeout errors
    """
    session = await self._get_session()

    try:
      # Not using async with: the caller is responsible for reading the body
      response = await session.request(method, url, **kwargs)
      return response
    except asyncio.TimeoutError as e:
      raise TimeoutError(f"Request timeout: {str(e) or f'no response within {self.timeout}s'}", self.timeout)
    except ClientConnectorError as e:
      raise NetworkError(f"Connection failed: {str(e)}", e)
    except ClientError as e:
      raise NetworkError(f"HTTP request failed: {str(e)}", e)

  async def close(self) -> None:
    """Close the HTTP session and clean up resources."""
    if self.session is not None:
      await self.session.close()
      self.session = None

  async def __aenter__(self) -> "HTTPClient":
    """Async context manager entry."""
    return self

  async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
    """Async context manager exit with cleanup."""
    await self.close()
