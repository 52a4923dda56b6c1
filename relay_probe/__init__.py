"""relay-probe: batch credential checks against LLM provider endpoints."""

__version__ = "0.1.0"
