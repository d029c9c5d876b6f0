"""Session configuration and model defaults."""

from __future__ import annotations

import enum
from dataclasses import dataclass

DEFAULT_MODEL = "gpt-4o"
DEFAULT_FLASH_MODEL = "gpt-4o-mini"
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_VERTEX_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class AuthType(str, enum.Enum):
    """How the session authenticates, and therefore which generator backs it."""

    LOGIN_WITH_GOOGLE_PERSONAL = "oauth-personal"
    USE_OPENAI = "openai-api-key"
    USE_VERTEX_AI = "vertex-ai"


@dataclass(frozen=True)
class ContentGeneratorConfig:
    """Immutable per-session settings, built once at startup.

    Attributes:
        model: Backend model id after effective-model resolution.
        auth_type: Selects the ContentGenerator implementation.
        api_key: Backend API key, if any.
        base_url: Backend API root, if not the default.
        vertexai: Whether the session targets the Vertex endpoint.
        project: Cloud project id (Vertex only).
        location: Cloud location (Vertex only).
        client_version: Version string reported in the User-Agent header.
    """

    model: str
    auth_type: AuthType | None = None
    api_key: str | None = None
    base_url: str | None = None
    vertexai: bool = False
    project: str | None = None
    location: str | None = None
    client_version: str = ""
