"""Lightweight OpenAI client helper.

Centralises API-key handling so analysis modules can simply do:

    from engagement_tracker.openai_client import chat_completion

and receive the assistant's reply text.
"""
from __future__ import annotations

import importlib
import os
from typing import Any, Dict, List, Optional

_DEFAULT_MODEL = os.getenv("OPENAI_MODEL", "gpt-4.1")

_client: Optional[Any] = None


class OpenAIClientError(RuntimeError):
    """Raised when client configuration is invalid (e.g., missing API key)."""


def _ensure_api_key_present() -> str:
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise OpenAIClientError("OPENAI_API_KEY environment variable is not set.")
    return api_key


def get_openai_client() -> Any:
    """Return a cached ``openai.OpenAI`` client configured from the environment.

    ``openai`` is imported lazily so the rest of the package works without
    credentials, and tests can place a stub in ``sys.modules`` first.

    Raises
    ------
    OpenAIClientError
        If ``OPENAI_API_KEY`` is missing or empty.
    """

    global _client
    if _client is not None:
        return _client

    api_key = _ensure_api_key_present()
    openai = importlib.import_module("openai")
    kwargs: Dict[str, Any] = {"api_key": api_key}
    org = os.getenv("OPENAI_ORG")
    if org:
        kwargs["organization"] = org

    _client = openai.OpenAI(**kwargs)
    return _client


def reset_client() -> None:
    """Drop the cached client (tests, key rotation)."""
    global _client
    _client = None


def chat_completion(
    messages: List[Dict[str, str]],
    *,
    model: str = _DEFAULT_MODEL,
    **kwargs: Any,
) -> str:
    """Run a chat completion and return the first choice's message content.

    Parameters
    ----------
    messages
        Chat messages in OpenAI format.
    model
        Model id to use (default: ``OPENAI_MODEL`` or ``gpt-4.1``).
    kwargs
        Additional parameters forwarded to ``chat.completions.create``.
    """

    client = get_openai_client()
    completion = client.chat.completions.create(model=model, messages=messages, **kwargs)
    try:
        return completion.choices[0].message.content or ""
    except (AttributeError, IndexError) as exc:
        raise ValueError("Model response missing expected fields") from exc
