"""Session setup: configuration from the environment and generator factory."""

from __future__ import annotations

import logging
import os
import platform
import sys
from collections.abc import Callable, Mapping
from importlib import metadata

from contentgen.adapters.base import ContentGenerator
from contentgen.adapters.openai_adapter import OpenAIContentGenerator
from contentgen.config import (
    DEFAULT_MODEL,
    DEFAULT_VERTEX_BASE_URL,
    AuthType,
    ContentGeneratorConfig,
)
from contentgen.errors import ConfigurationError
from contentgen.model_check import get_effective_model

logger = logging.getLogger(__name__)

# Builds the personal-login generator from (http headers, auth type).
PersonalGeneratorFactory = Callable[[dict[str, str], AuthType], ContentGenerator]


def _package_version() -> str:
    try:
        return metadata.version("contentgen")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def build_user_agent(version: str) -> str:
    """Return the User-Agent value sent with every backend request."""
    return f"ContentGen/{version} ({sys.platform}; {platform.machine()})"


async def create_content_generator_config(
    model: str | None,
    auth_type: AuthType | None,
    *,
    get_model: Callable[[], str | None] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ContentGeneratorConfig:
    """Build the session config, resolving the effective model.

    This is the only place environment variables are read.

    Environment variables:
        OPENAI_API_KEY, OPENAI_BASE_URL: OpenAI credentials and endpoint.
        GOOGLE_API_KEY, GOOGLE_CLOUD_PROJECT, GOOGLE_CLOUD_LOCATION: Vertex.
        CLI_VERSION: Version reported in the User-Agent header.

    Args:
        model: Model requested by the caller, if any.
        auth_type: Selected auth mode.
        get_model: Runtime model lookup; wins over ``model`` when it returns
            a value.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        The immutable session configuration.
    """
    env = os.environ if environ is None else environ
    openai_api_key = env.get("OPENAI_API_KEY")
    openai_base_url = env.get("OPENAI_BASE_URL")
    google_api_key = env.get("GOOGLE_API_KEY")
    google_cloud_project = env.get("GOOGLE_CLOUD_PROJECT")
    google_cloud_location = env.get("GOOGLE_CLOUD_LOCATION")
    client_version = env.get("CLI_VERSION") or _package_version()

    effective_model = (get_model() if get_model else None) or model or DEFAULT_MODEL
    base = ContentGeneratorConfig(
        model=effective_model,
        auth_type=auth_type,
        client_version=client_version,
    )

    if auth_type == AuthType.LOGIN_WITH_GOOGLE_PERSONAL:
        return base

    if auth_type == AuthType.USE_OPENAI and openai_api_key:
        return ContentGeneratorConfig(
            model=await get_effective_model(
                openai_api_key, effective_model, openai_base_url
            ),
            auth_type=auth_type,
            api_key=openai_api_key,
            base_url=openai_base_url,
            client_version=client_version,
        )

    if (
        auth_type == AuthType.USE_VERTEX_AI
        and google_api_key
        and google_cloud_project
        and google_cloud_location
    ):
        return ContentGeneratorConfig(
            model=await get_effective_model(
                google_api_key, effective_model, DEFAULT_VERTEX_BASE_URL
            ),
            auth_type=auth_type,
            api_key=google_api_key,
            vertexai=True,
            project=google_cloud_project,
            location=google_cloud_location,
            client_version=client_version,
        )

    logger.debug("No credentials found for auth type %s", auth_type)
    return base


def create_content_generator(
    config: ContentGeneratorConfig,
    *,
    personal_generator_factory: PersonalGeneratorFactory | None = None,
) -> ContentGenerator:
    """Return the ContentGenerator selected by ``config.auth_type``.

    Raises:
        ConfigurationError: Unsupported auth type, a key-based auth type
            without an API key, or personal login without a factory to build
            its generator.
    """
    version = config.client_version or _package_version()
    headers = {"User-Agent": build_user_agent(version)}

    if config.auth_type in (AuthType.USE_OPENAI, AuthType.USE_VERTEX_AI):
        if not config.api_key:
            raise ConfigurationError(
                f"No API key configured for auth type {config.auth_type.value}"
            )
    api_key = config.api_key

    if config.auth_type == AuthType.LOGIN_WITH_GOOGLE_PERSONAL:
        if personal_generator_factory is None:
            raise ConfigurationError(
                "Personal login requires a personal_generator_factory"
            )
        return personal_generator_factory(headers, config.auth_type)

    if config.auth_type == AuthType.USE_OPENAI:
        return OpenAIContentGenerator(
            api_key=api_key,
            base_url=config.base_url,
            default_headers=headers,
        )

    if config.auth_type == AuthType.USE_VERTEX_AI:
        return OpenAIContentGenerator(
            api_key=api_key,
            base_url=config.base_url or DEFAULT_VERTEX_BASE_URL,
            default_headers=headers,
        )

    raise ConfigurationError(
        f"Error creating content generator: unsupported auth type: {config.auth_type}"
    )
