"""Tests for the cached OpenAI client helper."""
from __future__ import annotations

import sys
import types
from unittest.mock import MagicMock

import pytest

from engagement_tracker import openai_client
from engagement_tracker.openai_client import OpenAIClientError, chat_completion, get_openai_client


@pytest.fixture(autouse=True)
def _fresh_client():
    openai_client.reset_client()
    yield
    openai_client.reset_client()


@pytest.fixture()
def fake_openai(monkeypatch):
    """Install a stand-in ``openai`` module exposing an ``OpenAI`` class."""
    module = types.ModuleType("openai")
    module.OpenAI = MagicMock(name="OpenAI")
    monkeypatch.setitem(sys.modules, "openai", module)
    return module


def _completion(content):
    message = types.SimpleNamespace(content=content)
    return types.SimpleNamespace(choices=[types.SimpleNamespace(message=message)])


def test_missing_api_key_raises(monkeypatch, fake_openai):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(OpenAIClientError):
        get_openai_client()
    fake_openai.OpenAI.assert_not_called()


def test_client_is_cached(monkeypatch, fake_openai):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("OPENAI_ORG", "org-1")

    first = get_openai_client()
    second = get_openai_client()

    assert first is second
    fake_openai.OpenAI.assert_called_once_with(api_key="sk-test", organization="org-1")


def test_chat_completion_returns_content(monkeypatch, fake_openai):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    client = fake_openai.OpenAI.return_value
    client.chat.completions.create.return_value = _completion('{"keyTrends": []}')

    text = chat_completion([{"role": "user", "content": "hi"}], model="gpt-test", temperature=0)

    assert text == '{"keyTrends": []}'
    client.chat.completions.create.assert_called_once_with(
        model="gpt-test", messages=[{"role": "user", "content": "hi"}], temperature=0
    )


def test_chat_completion_rejects_malformed_response(monkeypatch, fake_openai):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    fake_openai.OpenAI.return_value.chat.completions.create.return_value = types.SimpleNamespace(
        choices=[]
    )

    with pytest.raises(ValueError):
        chat_completion([{"role": "user", "content": "hi"}])
