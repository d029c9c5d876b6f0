"""contentgen - provider-agnostic content generation over OpenAI chat completions."""

from __future__ import annotations

from contentgen.adapters import ContentGenerator, OpenAIContentGenerator
from contentgen.config import (
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_FLASH_MODEL,
    DEFAULT_MODEL,
    AuthType,
    ContentGeneratorConfig,
)
from contentgen.content_generator import (
    build_user_agent,
    create_content_generator,
    create_content_generator_config,
)
from contentgen.errors import (
    BackendRequestError,
    ConfigurationError,
    ContentGeneratorError,
    GenerationCancelledError,
    MalformedToolArguments,
)
from contentgen.model_check import get_effective_model
from contentgen.models import (
    Blob,
    Candidate,
    Content,
    ContentEmbedding,
    CountTokensParameters,
    CountTokensResponse,
    EmbedContentParameters,
    EmbedContentResponse,
    FileData,
    FunctionCall,
    FunctionDeclaration,
    FunctionResponse,
    GenerateContentConfig,
    GenerateContentParameters,
    GenerateContentResponse,
    Part,
    Schema,
    Tool,
    Type,
    UsageMetadata,
    create_user_content,
    is_function_response,
)
from contentgen.streaming import StreamAccumulator

__all__ = [
    "ContentGenerator",
    "OpenAIContentGenerator",
    "StreamAccumulator",
    # Session setup
    "AuthType",
    "ContentGeneratorConfig",
    "DEFAULT_MODEL",
    "DEFAULT_FLASH_MODEL",
    "DEFAULT_EMBEDDING_MODEL",
    "build_user_agent",
    "create_content_generator",
    "create_content_generator_config",
    "get_effective_model",
    # Errors
    "BackendRequestError",
    "ConfigurationError",
    "ContentGeneratorError",
    "GenerationCancelledError",
    "MalformedToolArguments",
    # Models
    "Blob",
    "Candidate",
    "Content",
    "ContentEmbedding",
    "CountTokensParameters",
    "CountTokensResponse",
    "EmbedContentParameters",
    "EmbedContentResponse",
    "FileData",
    "FunctionCall",
    "FunctionDeclaration",
    "FunctionResponse",
    "GenerateContentConfig",
    "GenerateContentParameters",
    "GenerateContentResponse",
    "Part",
    "Schema",
    "Tool",
    "Type",
    "UsageMetadata",
    "create_user_content",
    "is_function_response",
]
