"""Catalogue of commonly probed model identifiers."""

from typing import Dict, List, Tuple

# Grouped as (label, model id); the CLI lists these with --list-models
MODEL_PRESETS: Dict[str, List[Tuple[str, str]]] = {
  "Google Gemini": [
    ("Gemini 2.0 Flash Exp", "gemini-2.0-flash-exp"),
    ("Gemini 1.5 Pro", "gemini-1.5-pro"),
    ("Gemini 1.5 Flash", "gemini-1.5-flash"),
    ("Gemini 1.5 Flash 8B", "gemini-1.5-flash-8b"),
    ("Gemini 2.5 Flash (Preview)", "gemini-2.5-flash"),
  ],
  "OpenAI": [
    ("GPT-4o", "gpt-4o"),
    ("GPT-4o Mini", "gpt-4o-mini"),
    ("o1 Preview", "o1-preview"),
    ("o1 Mini", "o1-mini"),
    ("GPT-4 Turbo", "gpt-4-turbo"),
    ("GPT-3.5 Turbo", "gpt-3.5-turbo"),
  ],
  "Anthropic": [
    ("Claude 3.5 Sonnet", "claude-3-5-sonnet-latest"),
    ("Claude 3.5 Haiku", "claude-3-5-haiku-latest"),
    ("Claude 3 Opus", "claude-3-opus-latest"),
  ],
  "DeepSeek / Open Source": [
    ("DeepSeek Chat (V3)", "deepseek-chat"),
    ("DeepSeek Reasoner (R1)", "deepseek-reasoner"),
    ("Llama 3.1 70B", "llama-3.1-70b-instruct"),
    ("Llama 3.1 8B", "llama-3.1-8b-instruct"),
  ],
}


def all_model_ids() -> List[str]:
  return [model for presets in MODEL_PRESETS.values() for _, model in presets]
