"""HTTP client infrastructure for probers."""

from relay_probe.verify.http.client import HTTPClient

__all__ = [
    "HTTPClient",
]
