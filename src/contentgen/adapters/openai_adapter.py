"""Content generator backed by the OpenAI chat completions API."""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
import time
from collections.abc import AsyncIterator, Awaitable
from typing import Any, TypeVar

import httpx
import openai

from contentgen.config import DEFAULT_EMBEDDING_MODEL
from contentgen.converters import build_messages, convert_tools, response_from_completion
from contentgen.errors import BackendRequestError, GenerationCancelledError
from contentgen.models import (
    ContentEmbedding,
    CountTokensParameters,
    CountTokensResponse,
    EmbedContentParameters,
    EmbedContentResponse,
    GenerateContentParameters,
    GenerateContentResponse,
)
from contentgen.streaming import StreamAccumulator

logger = logging.getLogger(__name__)

T = TypeVar("T")

_BACKEND_ERRORS = (openai.OpenAIError, httpx.HTTPError)

# Rough average for English text; see count_tokens.
_CHARS_PER_TOKEN = 4

_END_OF_STREAM = object()


def _backend_error(exc: BaseException, operation: str = "API") -> BackendRequestError:
    """Wrap a raw SDK or transport exception."""
    return BackendRequestError(
        f"OpenAI {operation} error: {exc}",
        original_message=str(exc),
        status_code=getattr(exc, "status_code", None),
        provider="openai",
    )


def _raise_if_aborted(abort_signal: asyncio.Event | None) -> None:
    if abort_signal is not None and abort_signal.is_set():
        raise GenerationCancelledError("Generation aborted")


async def _race_abort(
    awaitable: Awaitable[T], abort_signal: asyncio.Event | None
) -> T:
    """Await *awaitable*, cancelling it if *abort_signal* fires first.

    Raises:
        GenerationCancelledError: If the signal fired before completion.
    """
    if abort_signal is None:
        return await awaitable

    task = asyncio.ensure_future(awaitable)
    aborted = asyncio.ensure_future(abort_signal.wait())
    try:
        await asyncio.wait({task, aborted}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        aborted.cancel()
        if not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    if task.cancelled():
        raise GenerationCancelledError("Generation aborted")
    return task.result()


async def _next_chunk(iterator: AsyncIterator[Any]) -> Any:
    try:
        return await iterator.__anext__()
    except StopAsyncIteration:
        return _END_OF_STREAM


async def _close_stream(stream: Any) -> None:
    close = getattr(stream, "close", None) or getattr(stream, "aclose", None)
    if close is None:
        return
    result = close()
    if inspect.isawaitable(result):
        await result


class OpenAIContentGenerator:
    """ContentGenerator over ``client.chat.completions`` and ``client.embeddings``.

    Requests are converted with the functions in ``contentgen.converters``;
    responses come back as GenerateContentResponse. The generator keeps no
    per-call state, so concurrent calls on one instance are independent.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        default_headers: dict[str, str] | None = None,
        client: openai.AsyncOpenAI | None = None,
    ) -> None:
        self._client = client or openai.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            default_headers=default_headers,
        )

    # -----------------------------------------------------------------
    # Request mapping
    # -----------------------------------------------------------------

    def _build_kwargs(self, request: GenerateContentParameters) -> dict[str, Any]:
        config = request.config
        kwargs: dict[str, Any] = {
            "model": request.model,
            "messages": build_messages(request.contents, config.system_instruction),
        }
        if config.temperature is not None:
            kwargs["temperature"] = config.temperature
        if config.top_p is not None:
            kwargs["top_p"] = config.top_p
        if config.max_output_tokens is not None:
            kwargs["max_tokens"] = config.max_output_tokens
        if config.stop_sequences:
            kwargs["stop"] = list(config.stop_sequences)

        tools = convert_tools(config.tools) if config.tools else []
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        return kwargs

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    async def generate_content(
        self, request: GenerateContentParameters
    ) -> GenerateContentResponse:
        """Send a non-streaming chat completion request.

        Args:
            request: Provider-agnostic request to send.

        Returns:
            The first choice mapped onto a single ``model`` candidate.

        Raises:
            BackendRequestError: The backend or transport failed.
            GenerationCancelledError: The request's abort signal fired.
        """
        abort_signal = request.config.abort_signal
        _raise_if_aborted(abort_signal)
        kwargs = self._build_kwargs(request)

        t0 = time.monotonic()
        try:
            completion = await _race_abort(
                self._client.chat.completions.create(**kwargs), abort_signal
            )
        except _BACKEND_ERRORS as exc:
            raise _backend_error(exc) from exc
        logger.debug(
            "Chat completion for %s took %.0fms",
            request.model,
            (time.monotonic() - t0) * 1000,
        )
        return response_from_completion(completion)

    async def generate_content_stream(
        self, request: GenerateContentParameters
    ) -> AsyncIterator[GenerateContentResponse]:
        """Send a streaming chat completion request.

        Args:
            request: Provider-agnostic request to send.

        Yields:
            Full snapshots of the response so far. The last one carries
            ``finish_reason="stop"`` and any tool calls.

        Raises:
            BackendRequestError: The backend or transport failed; the stream
                ends.
            GenerationCancelledError: The request's abort signal fired; the
                stream ends.
        """
        abort_signal = request.config.abort_signal
        _raise_if_aborted(abort_signal)
        kwargs = self._build_kwargs(request)
        kwargs["stream"] = True

        try:
            stream = await _race_abort(
                self._client.chat.completions.create(**kwargs), abort_signal
            )
        except _BACKEND_ERRORS as exc:
            raise _backend_error(exc) from exc

        accumulator = StreamAccumulator()
        iterator = stream.__aiter__()
        try:
            while not accumulator.done:
                _raise_if_aborted(abort_signal)
                try:
                    chunk = await _race_abort(_next_chunk(iterator), abort_signal)
                except _BACKEND_ERRORS as exc:
                    raise _backend_error(exc) from exc
                if chunk is _END_OF_STREAM:
                    break
                snapshot = accumulator.feed(chunk)
                if snapshot is not None:
                    yield snapshot

            final = accumulator.finish()
            if final is not None:
                yield final
        finally:
            await _close_stream(stream)

    async def count_tokens(self, request: CountTokensParameters) -> CountTokensResponse:
        """Estimate the token count of the request's text.

        The backend has no counting endpoint, so this is an approximation of
        one token per four characters over all text parts joined by spaces.
        Do not rely on it for hard limits.
        """
        text = " ".join(
            part.text
            for content in request.contents
            for part in content.parts
            if part.text
        )
        return CountTokensResponse(total_tokens=math.ceil(len(text) / _CHARS_PER_TOKEN))

    async def embed_content(
        self, request: EmbedContentParameters
    ) -> EmbedContentResponse:
        """Embed each input string.

        Models whose id does not mention ``embedding`` are chat models, so
        ``DEFAULT_EMBEDDING_MODEL`` is used in their place.

        Raises:
            BackendRequestError: The backend or transport failed.
        """
        model = request.model if "embedding" in request.model else DEFAULT_EMBEDDING_MODEL
        try:
            response = await self._client.embeddings.create(
                model=model, input=list(request.contents)
            )
        except _BACKEND_ERRORS as exc:
            raise _backend_error(exc, "embeddings") from exc

        data = sorted(response.data, key=lambda item: getattr(item, "index", 0))
        return EmbedContentResponse(
            embeddings=[ContentEmbedding(values=list(item.embedding)) for item in data]
        )
