"""Base protocol for content generators."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from contentgen.models import (
    CountTokensParameters,
    CountTokensResponse,
    EmbedContentParameters,
    EmbedContentResponse,
    GenerateContentParameters,
    GenerateContentResponse,
)


@runtime_checkable
class ContentGenerator(Protocol):
    """Protocol that every content generator must satisfy.

    Callers only see this contract, so an OpenAI-backed generator and an
    injected personal-login generator are interchangeable.
    """

    async def generate_content(
        self, request: GenerateContentParameters
    ) -> GenerateContentResponse:
        """Send a non-streaming generation request."""
        ...

    def generate_content_stream(
        self, request: GenerateContentParameters
    ) -> AsyncIterator[GenerateContentResponse]:
        """Stream response snapshots; each one supersedes the last."""
        ...

    async def count_tokens(self, request: CountTokensParameters) -> CountTokensResponse:
        """Return a token count for the request's contents."""
        ...

    async def embed_content(
        self, request: EmbedContentParameters
    ) -> EmbedContentResponse:
        """Embed each input string, preserving order."""
        ...
