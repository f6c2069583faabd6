"""Shared fixtures: a scripted LLM collaborator, clean settings, seeded randomness."""

from __future__ import annotations

import random

import pytest

from config import get_settings
from database.mark_store import InMemoryMarkStore
from services.llm_service import LLMResult


class FakeLLM:
    """Stands in for ``llm_service.generate``; replays scripted replies in order."""

    def __init__(self, replies=None, error: Exception | None = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls: list[dict] = []

    async def __call__(self, prompt, system_instruction, **kwargs):
        self.calls.append({"prompt": prompt, "system_instruction": system_instruction, **kwargs})
        if self.error is not None:
            raise self.error
        reply = self.replies.pop(0) if self.replies else "Phản hồi mẫu."
        return reply if isinstance(reply, LLMResult) else LLMResult(text=reply)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    for var in (
        "ANTHROPIC_API_KEY",
        "SUPABASE_URL",
        "SUPABASE_KEY",
        "TELEGRAM_BOT_TOKEN",
        "TELEGRAM_CHAT_ID",
    ):
        monkeypatch.setenv(var, "")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def mark_store():
    return InMemoryMarkStore()
