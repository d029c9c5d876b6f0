"""Streaming utilities for the content generator.

Provides StreamAccumulator, which turns chat-completion chunks into full
GenerateContentResponse snapshots. Each snapshot replaces the previous one;
callers never merge them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from contentgen.converters import parse_function_call, usage_from_backend
from contentgen.models import (
    Candidate,
    Content,
    GenerateContentResponse,
    Part,
    UsageMetadata,
)

logger = logging.getLogger(__name__)


@dataclass
class PendingToolCall:
    """A tool call assembled from streamed fragments."""

    index: int
    id: str | None = None
    name: str = ""
    arguments: str = ""


def build_snapshot(
    text: str,
    tool_calls: list[PendingToolCall] | None = None,
    finish_reason: str | None = None,
    usage: UsageMetadata | None = None,
) -> GenerateContentResponse:
    """Build one streaming snapshot from accumulated state."""
    parts: list[Part] = []
    if text:
        parts.append(Part(text=text))
    for call in tool_calls or []:
        parts.append(
            Part(function_call=parse_function_call(call.name, call.arguments, call.id))
        )
    return GenerateContentResponse(
        candidates=[
            Candidate(
                content=Content(role="model", parts=parts),
                finish_reason=finish_reason,
                index=0,
            )
        ],
        usage_metadata=usage,
    )


@dataclass
class StreamAccumulator:
    """Accumulates chat-completion chunks into response snapshots.

    Feed chunks in order via ``feed()``. A text delta returns a snapshot
    holding all text so far; tool-call fragments are buffered silently; the
    chunk carrying a finish reason returns the final snapshot with the text
    and every buffered tool call. After that the accumulator is done and
    ignores further chunks. If the stream ends without a finish reason,
    ``finish()`` flushes the final snapshot instead.
    """

    text: str = ""
    tool_calls: dict[int, PendingToolCall] = field(default_factory=dict)
    done: bool = False

    def feed(self, chunk: Any) -> GenerateContentResponse | None:
        """Process one chunk, returning a snapshot when one is due."""
        if self.done:
            return None

        choices = getattr(chunk, "choices", None) or []
        if not choices:
            return None
        choice = choices[0]
        delta = getattr(choice, "delta", None)

        snapshot = None
        if delta is not None:
            if delta.content:
                self.text += delta.content
                snapshot = build_snapshot(self.text)
            for fragment in getattr(delta, "tool_calls", None) or []:
                self._buffer_fragment(fragment)

        if choice.finish_reason:
            return self._final(usage_from_backend(getattr(chunk, "usage", None)))
        return snapshot

    def finish(self) -> GenerateContentResponse | None:
        """Flush the final snapshot if no finish reason was seen."""
        if self.done:
            return None
        logger.debug("Stream ended without a finish reason; flushing")
        return self._final(None)

    def _final(self, usage: UsageMetadata | None) -> GenerateContentResponse:
        self.done = True
        return build_snapshot(
            self.text,
            [self.tool_calls[i] for i in sorted(self.tool_calls)],
            finish_reason="stop",
            usage=usage,
        )

    def _buffer_fragment(self, fragment: Any) -> None:
        index = getattr(fragment, "index", None)
        if index is None:
            index = len(self.tool_calls)
        pending = self.tool_calls.get(index)
        if pending is None:
            pending = self.tool_calls[index] = PendingToolCall(index=index)

        if getattr(fragment, "id", None):
            pending.id = fragment.id
        function = getattr(fragment, "function", None)
        if function is None:
            return
        if getattr(function, "name", None) and not pending.name:
            pending.name = function.name
        if getattr(function, "arguments", None):
            pending.arguments += function.arguments
