"""Protocol prober implementations."""

from .base import Prober
from .gemini import GeminiProber
from .openai import OpenAIProber

__all__ = [
  "Prober",
  "GeminiProber",
  "OpenAIProber",
]
