"""Error hierarchy for the content generator.

Backend and transport failures surface as BackendRequestError so callers can
tell "the backend rejected this" apart from a bug in request conversion,
which is left to propagate as whatever exception the conversion raised.
"""

from __future__ import annotations


class ContentGeneratorError(Exception):
    """Base exception for all content generator errors."""


class BackendRequestError(ContentGeneratorError):
    """A generation or embedding call failed at the backend or transport.

    Attributes:
        original_message: Message text of the underlying failure.
        status_code: HTTP status code, if the backend returned one.
        provider: Which backend produced the error.
    """

    def __init__(
        self,
        message: str,
        *,
        original_message: str = "",
        status_code: int | None = None,
        provider: str = "",
    ) -> None:
        super().__init__(message)
        self.original_message = original_message or message
        self.status_code = status_code
        self.provider = provider


class GenerationCancelledError(ContentGeneratorError):
    """Request cancelled via abort signal."""


class MalformedToolArguments(ContentGeneratorError):
    """A tool call's argument payload is not valid JSON.

    Attached to the offending FunctionCall rather than raised, so the rest of
    the response stays usable.
    """

    def __init__(self, message: str, *, tool_name: str = "", raw_arguments: str = "") -> None:
        super().__init__(message)
        self.tool_name = tool_name
        self.raw_arguments = raw_arguments

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MalformedToolArguments):
            return NotImplemented
        return (
            str(self) == str(other)
            and self.tool_name == other.tool_name
            and self.raw_arguments == other.raw_arguments
        )

    def __hash__(self) -> int:
        return hash((str(self), self.tool_name, self.raw_arguments))


class ProbeInconclusive(ContentGeneratorError):
    """The model availability probe did not produce a usable answer."""


class ConfigurationError(ContentGeneratorError):
    """Unsupported auth type or missing collaborator."""
