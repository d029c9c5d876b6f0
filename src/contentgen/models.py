"""Core data models for the content generator.

Defines the provider-agnostic conversation format (contents and parts),
tool declarations with their parameter schemas, and the request/response
envelopes shared by every ContentGenerator implementation.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field
from typing import Any

from contentgen.errors import MalformedToolArguments

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Type(str, enum.Enum):
    """Schema type tags in the provider-agnostic (upper-case) spelling."""

    STRING = "STRING"
    NUMBER = "NUMBER"
    INTEGER = "INTEGER"
    BOOLEAN = "BOOLEAN"
    ARRAY = "ARRAY"
    OBJECT = "OBJECT"


# ---------------------------------------------------------------------------
# Parts
# ---------------------------------------------------------------------------


@dataclass
class FunctionCall:
    """A function invocation requested by the model.

    ``raw_arguments`` and ``error`` are only populated on calls synthesized
    from a backend response. When the backend's argument string could not be
    parsed, ``args`` is empty and ``error`` holds the parse failure.
    """

    name: str
    args: dict[str, Any] = field(default_factory=dict)
    id: str | None = None
    raw_arguments: str | None = None
    error: MalformedToolArguments | None = None


@dataclass
class FunctionResponse:
    """The result of executing a function call."""

    name: str
    response: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass
class Blob:
    """Inline binary data, base64 encoded."""

    mime_type: str
    data: str


@dataclass
class FileData:
    """Reference to data stored elsewhere."""

    mime_type: str
    file_uri: str


@dataclass
class Part:
    """One unit of payload within a turn.

    A tagged union by convention: only the populated fields are meaningful.
    """

    text: str | None = None
    function_call: FunctionCall | None = None
    function_response: FunctionResponse | None = None
    inline_data: Blob | None = None
    file_data: FileData | None = None
    thought: str | None = None

    @staticmethod
    def from_text(text: str) -> Part:
        return Part(text=text)

    @staticmethod
    def from_function_call(
        name: str, args: dict[str, Any] | None = None, id: str | None = None
    ) -> Part:
        return Part(function_call=FunctionCall(name=name, args=args or {}, id=id))

    @staticmethod
    def from_function_response(
        name: str, response: dict[str, Any] | None = None, id: str | None = None
    ) -> Part:
        return Part(
            function_response=FunctionResponse(
                name=name, response=response or {}, id=id
            )
        )


@dataclass
class Content:
    """One role-tagged conversational turn."""

    role: str
    parts: list[Part] = field(default_factory=list)


def create_user_content(message: Part | list[Part]) -> Content:
    """Wrap a part or list of parts into a ``user`` turn."""
    parts = list(message) if isinstance(message, list) else [message]
    return Content(role="user", parts=parts)


def is_function_response(content: Content) -> bool:
    """Return True for a user turn made up only of function responses."""
    return (
        content.role == "user"
        and bool(content.parts)
        and all(part.function_response is not None for part in content.parts)
    )


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


_SCHEMA_KEYS = {
    "type",
    "description",
    "properties",
    "items",
    "required",
    "enum",
    "anyOf",
    "default",
}


@dataclass
class Schema:
    """Parameter schema for a function declaration.

    Known fields are named; anything else a caller supplies (for example
    ``minimum`` or ``format``) lives in ``extra`` and is passed through to the
    backend untouched.
    """

    type: str | Type
    description: str | None = None
    properties: dict[str, Schema] | None = None
    items: Schema | None = None
    required: list[str] | None = None
    enum: list[str] | None = None
    any_of: list[Schema] | None = None
    default: Any = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Schema:
        """Build a Schema from a JSON-schema-like mapping.

        Args:
            data: Mapping with at least a ``type`` key.

        Returns:
            The parsed Schema, with unrecognized keys moved into ``extra``.

        Raises:
            KeyError: If ``type`` is missing.
        """
        properties = data.get("properties")
        items = data.get("items")
        any_of = data.get("anyOf")
        return cls(
            type=data["type"],
            description=data.get("description"),
            properties=(
                {name: cls.from_dict(sub) for name, sub in properties.items()}
                if properties is not None
                else None
            ),
            items=cls.from_dict(items) if items is not None else None,
            required=list(data["required"]) if "required" in data else None,
            enum=list(data["enum"]) if "enum" in data else None,
            any_of=[cls.from_dict(s) for s in any_of] if any_of is not None else None,
            default=data.get("default"),
            extra={k: v for k, v in data.items() if k not in _SCHEMA_KEYS},
        )


@dataclass
class FunctionDeclaration:
    """A named, schema-described function the model may call."""

    name: str
    description: str = ""
    parameters: Schema | None = None


@dataclass
class Tool:
    """A group of function declarations."""

    function_declarations: list[FunctionDeclaration] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


@dataclass
class GenerateContentConfig:
    """Per-request generation options.

    ``abort_signal`` cancels the in-flight backend call when set.
    """

    temperature: float | None = None
    top_p: float | None = None
    max_output_tokens: int | None = None
    stop_sequences: list[str] | None = None
    system_instruction: str | Content | None = None
    tools: list[Tool] | None = None
    abort_signal: asyncio.Event | None = None


@dataclass
class GenerateContentParameters:
    model: str
    contents: list[Content] = field(default_factory=list)
    config: GenerateContentConfig = field(default_factory=GenerateContentConfig)


@dataclass
class CountTokensParameters:
    model: str
    contents: list[Content] = field(default_factory=list)


@dataclass
class EmbedContentParameters:
    model: str
    contents: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


@dataclass
class UsageMetadata:
    """Token counts reported by the backend."""

    prompt_token_count: int | None = None
    candidates_token_count: int | None = None
    total_token_count: int | None = None


@dataclass
class Candidate:
    content: Content
    finish_reason: str | None = None
    index: int = 0


@dataclass
class GenerateContentResponse:
    """Result envelope for one request or one streaming snapshot."""

    candidates: list[Candidate] = field(default_factory=list)
    usage_metadata: UsageMetadata | None = None

    def _first_parts(self) -> list[Part]:
        if not self.candidates:
            return []
        return self.candidates[0].content.parts

    @property
    def text(self) -> str | None:
        """Concatenated text of the first candidate, or None if it has none."""
        texts = [p.text for p in self._first_parts() if p.text is not None]
        return "".join(texts) if texts else None

    @property
    def function_calls(self) -> list[FunctionCall]:
        """Function calls of the first candidate, in order."""
        return [p.function_call for p in self._first_parts() if p.function_call]

    @property
    def tool_errors(self) -> list[MalformedToolArguments]:
        """Argument parse failures attached to the first candidate's calls."""
        return [fc.error for fc in self.function_calls if fc.error is not None]


@dataclass
class CountTokensResponse:
    total_tokens: int = 0


@dataclass
class ContentEmbedding:
    values: list[float] = field(default_factory=list)


@dataclass
class EmbedContentResponse:
    embeddings: list[ContentEmbedding] = field(default_factory=list)
