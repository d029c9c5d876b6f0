"""Conversion between the provider-agnostic content model and OpenAI chat
completions.

All functions here are stateless. Request-side helpers produce plain dicts
ready to pass to ``client.chat.completions.create``; the response-side helper
reads SDK objects by attribute so any object with the same shape works.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from contentgen.errors import MalformedToolArguments
from contentgen.models import (
    Candidate,
    Content,
    FunctionCall,
    FunctionResponse,
    GenerateContentResponse,
    Part,
    Schema,
    Tool,
    UsageMetadata,
)

logger = logging.getLogger(__name__)

_PASSTHROUGH_ROLES = ("user", "system", "assistant")


# ---------------------------------------------------------------------------
# Schemas and tools
# ---------------------------------------------------------------------------


def convert_schema(schema: Schema) -> dict[str, Any]:
    """Convert a Schema into the backend's JSON-schema dialect.

    Args:
        schema: Provider-agnostic parameter schema.

    Returns:
        A dict with a lower-cased ``type`` and only the fields that were set.
    """
    type_tag = schema.type.value if hasattr(schema.type, "value") else schema.type
    converted: dict[str, Any] = {"type": str(type_tag).lower()}

    if schema.description is not None:
        converted["description"] = schema.description
    if schema.properties is not None:
        converted["properties"] = {
            name: convert_schema(sub) for name, sub in schema.properties.items()
        }
    if schema.items is not None:
        converted["items"] = convert_schema(schema.items)
    if schema.required is not None:
        converted["required"] = list(schema.required)
    if schema.enum is not None:
        converted["enum"] = list(schema.enum)
    if schema.any_of is not None:
        converted["anyOf"] = [convert_schema(sub) for sub in schema.any_of]
    if schema.default is not None:
        converted["default"] = schema.default

    for key, value in schema.extra.items():
        converted.setdefault(key, value)

    return converted


def convert_tools(tools: list[Tool]) -> list[dict[str, Any]]:
    """Flatten tools into one backend tool entry per function declaration."""
    converted: list[dict[str, Any]] = []
    for tool in tools:
        for decl in tool.function_declarations:
            function: dict[str, Any] = {
                "name": decl.name,
                "description": decl.description,
            }
            if decl.parameters is not None:
                function["parameters"] = convert_schema(decl.parameters)
            converted.append({"type": "function", "function": function})
    return converted


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


def map_role(role: str) -> str:
    """Map a content role onto a chat-completions role.

    ``model`` becomes ``assistant``; unknown roles fall back to ``user``.
    """
    if role == "model":
        return "assistant"
    if role in _PASSTHROUGH_ROLES:
        return role
    return "user"


class _CallIdAllocator:
    """Hands out tool call ids for one request and pairs responses with them."""

    def __init__(self) -> None:
        self._counter = 0
        # (generated id, function name, caller-supplied id) not yet answered
        self._outstanding: list[tuple[str, str, str | None]] = []

    def _next(self) -> str:
        self._counter += 1
        return f"call_{self._counter}"

    def for_call(self, call: FunctionCall) -> str:
        call_id = self._next()
        self._outstanding.append((call_id, call.name, call.id))
        return call_id

    def for_response(self, response: FunctionResponse) -> str:
        match = None
        if response.id is not None:
            match = next(
                (entry for entry in self._outstanding if entry[2] == response.id),
                None,
            )
        if match is None:
            match = next(
                (entry for entry in self._outstanding if entry[1] == response.name),
                None,
            )
        if match is None and self._outstanding:
            match = self._outstanding[0]
        if match is None:
            return self._next()
        self._outstanding.remove(match)
        return match[0]


def _describe_part(part: Part) -> str:
    if part.text:
        return part.text
    if part.inline_data is not None:
        return f"[{part.inline_data.mime_type} data]"
    return ""


def _convert_tool_turn(
    content: Content, role: str, ids: _CallIdAllocator
) -> list[dict[str, Any]]:
    texts = [p.text for p in content.parts if p.text]
    calls = [p.function_call for p in content.parts if p.function_call is not None]
    responses = [
        p.function_response for p in content.parts if p.function_response is not None
    ]
    body = "\n".join(texts) or None

    messages: list[dict[str, Any]] = []
    if calls:
        messages.append(
            {
                "role": "assistant",
                "content": body,
                "tool_calls": [
                    {
                        "id": ids.for_call(call),
                        "type": "function",
                        "function": {
                            "name": call.name,
                            "arguments": json.dumps(call.args),
                        },
                    }
                    for call in calls
                ],
            }
        )
    for response in responses:
        messages.append(
            {
                "role": "tool",
                "tool_call_id": ids.for_response(response),
                "content": json.dumps(response.response),
            }
        )
    if body and not calls:
        messages.append({"role": role, "content": body})
    return messages


def convert_contents(contents: list[Content]) -> list[dict[str, Any]]:
    """Convert content turns into a flat chat-completions message list.

    Turns carrying function calls or responses become an assistant message
    with ``tool_calls`` plus one ``tool`` message per response. Tool result
    ids reuse the generated call ids so the backend can pair them up.

    Args:
        contents: Conversation turns in order.

    Returns:
        Message dicts in the backend's format.
    """
    ids = _CallIdAllocator()
    messages: list[dict[str, Any]] = []

    for content in contents:
        role = map_role(content.role)
        if any(
            p.function_call is not None or p.function_response is not None
            for p in content.parts
        ):
            messages.extend(_convert_tool_turn(content, role, ids))
            continue

        body = "\n".join(filter(None, (_describe_part(p) for p in content.parts)))
        if body:
            messages.append({"role": role, "content": body})

    return messages


def system_instruction_text(instruction: str | Content | None) -> str:
    """Flatten a system instruction into plain text."""
    if instruction is None:
        return ""
    if isinstance(instruction, str):
        return instruction
    return "\n".join(p.text for p in instruction.parts if p.text)


def build_messages(
    contents: list[Content], system_instruction: str | Content | None = None
) -> list[dict[str, Any]]:
    """Convert contents and put the system instruction, if any, first."""
    messages = convert_contents(contents)
    system_text = system_instruction_text(system_instruction)
    if system_text:
        messages.insert(0, {"role": "system", "content": system_text})
    return messages


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


def parse_function_call(
    name: str, arguments: str | None, call_id: str | None = None
) -> FunctionCall:
    """Build a FunctionCall from a backend argument string.

    An empty argument string means no arguments. Invalid JSON does not raise:
    the call comes back with empty ``args`` and a MalformedToolArguments in
    ``error``.
    """
    raw = arguments or ""
    try:
        args = json.loads(raw or "{}")
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse arguments for tool call %r: %s", name, exc)
        return FunctionCall(
            name=name,
            id=call_id,
            raw_arguments=raw,
            error=MalformedToolArguments(
                f"Arguments for tool call '{name}' are not valid JSON: {exc}",
                tool_name=name,
                raw_arguments=raw,
            ),
        )
    if not isinstance(args, dict):
        logger.warning("Arguments for tool call %r are not a JSON object", name)
        return FunctionCall(
            name=name,
            id=call_id,
            raw_arguments=raw,
            error=MalformedToolArguments(
                f"Arguments for tool call '{name}' are not a JSON object",
                tool_name=name,
                raw_arguments=raw,
            ),
        )
    return FunctionCall(name=name, args=args, id=call_id, raw_arguments=raw)


def usage_from_backend(usage: Any) -> UsageMetadata | None:
    """Map backend token usage onto UsageMetadata, or None when absent."""
    if usage is None:
        return None
    return UsageMetadata(
        prompt_token_count=getattr(usage, "prompt_tokens", None),
        candidates_token_count=getattr(usage, "completion_tokens", None),
        total_token_count=getattr(usage, "total_tokens", None),
    )


def response_from_completion(completion: Any) -> GenerateContentResponse:
    """Convert a non-streaming chat completion into a GenerateContentResponse.

    Only the first choice is used.

    Args:
        completion: A ``ChatCompletion`` (or an object of the same shape).

    Returns:
        A response with a single ``model`` candidate, or no candidates when
        the backend returned no choices.
    """
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return GenerateContentResponse(
            candidates=[],
            usage_metadata=usage_from_backend(getattr(completion, "usage", None)),
        )

    choice = choices[0]
    message = choice.message
    parts: list[Part] = []

    if message.content:
        parts.append(Part(text=message.content))

    for tool_call in getattr(message, "tool_calls", None) or []:
        if getattr(tool_call, "type", "function") != "function":
            continue
        parts.append(
            Part(
                function_call=parse_function_call(
                    tool_call.function.name,
                    tool_call.function.arguments,
                    getattr(tool_call, "id", None),
                )
            )
        )

    return GenerateContentResponse(
        candidates=[
            Candidate(
                content=Content(role="model", parts=parts),
                finish_reason=choice.finish_reason or None,
                index=0,
            )
        ],
        usage_metadata=usage_from_backend(getattr(completion, "usage", None)),
    )
