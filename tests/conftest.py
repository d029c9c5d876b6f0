"""Shared fixtures and backend object builders."""

from __future__ import annotations

import os
from types import SimpleNamespace
from typing import Any

import pytest
from dotenv import load_dotenv

# Load API keys from .env.local (project root)
load_dotenv(".env.local")

SMOKE_MODEL = "gpt-4o-mini"


def _has_key(env_var: str) -> bool:
    """Return True if the environment variable is set and non-placeholder."""
    val = os.environ.get(env_var, "")
    return bool(val) and val != "your-key-here"


@pytest.fixture(scope="session")
def requires_openai_key() -> None:
    """Skip the test if OPENAI_API_KEY is missing or placeholder."""
    if not _has_key("OPENAI_API_KEY"):
        pytest.skip("OPENAI_API_KEY not set, skipping smoke test")


# ---------------------------------------------------------------------------
# Chat-completion shaped objects
# ---------------------------------------------------------------------------


def make_tool_call(call_id: str, name: str, arguments: str) -> SimpleNamespace:
    """A ``ChatCompletionMessageToolCall``-shaped object."""
    return SimpleNamespace(
        id=call_id,
        type="function",
        function=SimpleNamespace(name=name, arguments=arguments),
    )


def make_usage(prompt: int, completion: int) -> SimpleNamespace:
    return SimpleNamespace(
        prompt_tokens=prompt,
        completion_tokens=completion,
        total_tokens=prompt + completion,
    )


def make_completion(
    content: str | None = "Hello!",
    tool_calls: list[Any] | None = None,
    finish_reason: str | None = "stop",
    usage: Any = None,
) -> SimpleNamespace:
    """A ``ChatCompletion``-shaped object with a single choice."""
    message = SimpleNamespace(role="assistant", content=content, tool_calls=tool_calls)
    return SimpleNamespace(
        id="chatcmpl-test",
        choices=[SimpleNamespace(index=0, message=message, finish_reason=finish_reason)],
        usage=usage,
    )


def make_fragment(
    index: int,
    call_id: str | None = None,
    name: str | None = None,
    arguments: str | None = None,
) -> SimpleNamespace:
    """A ``ChoiceDeltaToolCall``-shaped streaming fragment."""
    return SimpleNamespace(
        index=index,
        id=call_id,
        type="function" if call_id else None,
        function=SimpleNamespace(name=name, arguments=arguments),
    )


def make_chunk(
    content: str | None = None,
    tool_calls: list[Any] | None = None,
    finish_reason: str | None = None,
    usage: Any = None,
) -> SimpleNamespace:
    """A ``ChatCompletionChunk``-shaped object."""
    delta = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(
        choices=[SimpleNamespace(index=0, delta=delta, finish_reason=finish_reason)],
        usage=usage,
    )


class FakeStream:
    """Async-iterable stand-in for ``openai.AsyncStream``."""

    def __init__(self, chunks: list[Any], error: Exception | None = None) -> None:
        self.chunks = chunks
        self.error = error
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def openai_generator(requires_openai_key):  # noqa: ARG001
    """Return an OpenAIContentGenerator configured from environment variables."""
    from contentgen.adapters.openai_adapter import OpenAIContentGenerator

    return OpenAIContentGenerator(
        api_key=os.environ["OPENAI_API_KEY"],
        base_url=os.environ.get("OPENAI_BASE_URL"),
    )
