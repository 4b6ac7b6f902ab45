"""
Shared pytest fixtures for the quiz backend test suite.
Applies to all subdirectories: unit/, api/
No network access: the OpenAI client is always replaced by a fake.
"""

import json
import os
import sys
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

# ── Ensure backend is importable from every pytest session ──────────────────
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "backend"))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

# Empty key wins over any local .env, so the real app never gets a client
os.environ["OPENAI_API_KEY"] = ""


def make_question(n: int, answer_slot: int = 0) -> dict:
    options = [f"Option {n}.{i}" for i in range(1, 5)]
    return {
        "question": f"Question number {n}?",
        "options": options,
        "correctAnswer": options[answer_slot],
    }


def make_payload(count: int, start: int = 1) -> str:
    return json.dumps({"questions": [make_question(n) for n in range(start, start + count)]})


def make_completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeOpenAI:
    """Stands in for AsyncOpenAI; ``replies`` are contents or exceptions, in call order."""

    def __init__(self, *replies, side_effect=None):
        if side_effect is None:
            side_effect = [r if isinstance(r, BaseException) else make_completion(r) for r in replies]
        self.create = AsyncMock(side_effect=side_effect)
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self.create))
        self.close = AsyncMock()

    def prompts(self) -> list[str]:
        return [call.kwargs["messages"][1]["content"] for call in self.create.await_args_list]


# ── Settings fixture ─────────────────────────────────────────────────────────

@pytest.fixture
def settings_factory():
    """Build Settings isolated from the environment's .env file."""
    from config import Settings

    def _make(**overrides):
        values = {
            "openai_api_key": "sk-test",
            "retry_backoff_seconds": 0,
            "request_timeout_seconds": 1,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(settings_factory):
    return settings_factory()


# ── Generator fixture ────────────────────────────────────────────────────────

@pytest.fixture
def generator_factory(settings_factory):
    """Return (generator, fake_client) wired with the given replies and settings overrides."""
    from services.generation import QuizGenerator

    def _make(*replies, side_effect=None, **overrides):
        client = FakeOpenAI(*replies, side_effect=side_effect)
        return QuizGenerator(client, settings_factory(**overrides)), client

    return _make


# ── Payload fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def quiz_json():
    """Factory: quiz_json(count, start=1) -> valid model reply text."""
    return make_payload


@pytest.fixture
def question_dict():
    """Factory: question_dict(n, answer_slot=0) -> one valid question object."""
    return make_question
