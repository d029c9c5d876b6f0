"""Tests for session config resolution and the generator factory."""

from __future__ import annotations

import dataclasses
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from contentgen.adapters.base import ContentGenerator
from contentgen.adapters.openai_adapter import OpenAIContentGenerator
from contentgen.config import (
    DEFAULT_FLASH_MODEL,
    DEFAULT_MODEL,
    DEFAULT_VERTEX_BASE_URL,
    AuthType,
    ContentGeneratorConfig,
)
from contentgen.content_generator import (
    build_user_agent,
    create_content_generator,
    create_content_generator_config,
)
from contentgen.errors import ConfigurationError

_OPENAI_ENV = {"OPENAI_API_KEY": "sk-test", "CLI_VERSION": "1.2.3"}
_VERTEX_ENV = {
    "GOOGLE_API_KEY": "g-key",
    "GOOGLE_CLOUD_PROJECT": "proj",
    "GOOGLE_CLOUD_LOCATION": "us-central1",
}


def _patch_probe(result: str | None = None):
    """Patch the model probe; by default it echoes the configured model."""
    probe = AsyncMock(side_effect=lambda key, model, base_url=None: result or model)
    return patch("contentgen.content_generator.get_effective_model", probe)


class TestCreateConfig:
    @pytest.mark.asyncio
    async def test_openai_key_probes_and_keeps_model(self) -> None:
        with _patch_probe() as probe:
            config = await create_content_generator_config(
                None, AuthType.USE_OPENAI, environ=_OPENAI_ENV
            )

        assert config.model == DEFAULT_MODEL
        assert config.api_key == "sk-test"
        assert config.auth_type == AuthType.USE_OPENAI
        assert config.client_version == "1.2.3"
        probe.assert_awaited_once_with("sk-test", DEFAULT_MODEL, None)

    @pytest.mark.asyncio
    async def test_probe_result_becomes_model(self) -> None:
        with _patch_probe(DEFAULT_FLASH_MODEL):
            config = await create_content_generator_config(
                DEFAULT_MODEL, AuthType.USE_OPENAI, environ=_OPENAI_ENV
            )
        assert config.model == DEFAULT_FLASH_MODEL

    @pytest.mark.asyncio
    async def test_openai_base_url_is_passed_through(self) -> None:
        env = {**_OPENAI_ENV, "OPENAI_BASE_URL": "https://proxy.example.com/v1"}
        with _patch_probe() as probe:
            config = await create_content_generator_config(
                "gpt-4o", AuthType.USE_OPENAI, environ=env
            )
        assert config.base_url == "https://proxy.example.com/v1"
        probe.assert_awaited_once_with("sk-test", "gpt-4o", "https://proxy.example.com/v1")

    @pytest.mark.asyncio
    async def test_missing_key_skips_probe(self) -> None:
        with _patch_probe() as probe:
            config = await create_content_generator_config(
                "gpt-4o", AuthType.USE_OPENAI, environ={}
            )
        probe.assert_not_awaited()
        assert config.api_key is None
        assert config.model == "gpt-4o"

    @pytest.mark.asyncio
    async def test_vertex_requires_all_three_variables(self) -> None:
        partial = {"GOOGLE_API_KEY": "g-key", "GOOGLE_CLOUD_PROJECT": "proj"}
        with _patch_probe() as probe:
            config = await create_content_generator_config(
                None, AuthType.USE_VERTEX_AI, environ=partial
            )
        probe.assert_not_awaited()
        assert config.vertexai is False

    @pytest.mark.asyncio
    async def test_vertex_config(self) -> None:
        with _patch_probe() as probe:
            config = await create_content_generator_config(
                None, AuthType.USE_VERTEX_AI, environ=_VERTEX_ENV
            )
        assert config.vertexai is True
        assert config.api_key == "g-key"
        assert config.project == "proj"
        assert config.location == "us-central1"
        probe.assert_awaited_once_with("g-key", DEFAULT_MODEL, DEFAULT_VERTEX_BASE_URL)

    @pytest.mark.asyncio
    async def test_personal_login_does_not_probe(self) -> None:
        with _patch_probe() as probe:
            config = await create_content_generator_config(
                "gpt-4o", AuthType.LOGIN_WITH_GOOGLE_PERSONAL, environ=_OPENAI_ENV
            )
        probe.assert_not_awaited()
        assert config.api_key is None
        assert config.auth_type == AuthType.LOGIN_WITH_GOOGLE_PERSONAL

    @pytest.mark.asyncio
    async def test_get_model_wins_over_argument(self) -> None:
        with _patch_probe():
            config = await create_content_generator_config(
                "gpt-4o",
                AuthType.USE_OPENAI,
                get_model=lambda: "o3-mini",
                environ=_OPENAI_ENV,
            )
        assert config.model == "o3-mini"

    @pytest.mark.asyncio
    async def test_empty_get_model_falls_back_to_argument(self) -> None:
        with _patch_probe():
            config = await create_content_generator_config(
                "gpt-4o-mini",
                AuthType.USE_OPENAI,
                get_model=lambda: None,
                environ=_OPENAI_ENV,
            )
        assert config.model == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_config_is_immutable(self) -> None:
        with _patch_probe():
            config = await create_content_generator_config(
                None, AuthType.USE_OPENAI, environ=_OPENAI_ENV
            )
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.model = "other"  # type: ignore[misc]


class TestCreateGenerator:
    def test_openai_generator_carries_user_agent(self) -> None:
        config = ContentGeneratorConfig(
            model="gpt-4o",
            auth_type=AuthType.USE_OPENAI,
            api_key="sk-test",
            client_version="1.2.3",
        )
        generator = create_content_generator(config)

        assert isinstance(generator, OpenAIContentGenerator)
        assert isinstance(generator, ContentGenerator)
        user_agent = generator._client.default_headers["User-Agent"]
        assert user_agent == build_user_agent("1.2.3")
        assert user_agent.startswith("ContentGen/1.2.3 (")

    def test_openai_base_url(self) -> None:
        config = ContentGeneratorConfig(
            model="gpt-4o",
            auth_type=AuthType.USE_OPENAI,
            api_key="sk-test",
            base_url="https://proxy.example.com/v1",
        )
        generator = create_content_generator(config)
        assert str(generator._client.base_url).startswith("https://proxy.example.com/v1")

    def test_vertex_uses_default_endpoint(self) -> None:
        config = ContentGeneratorConfig(
            model="gpt-4o",
            auth_type=AuthType.USE_VERTEX_AI,
            api_key="g-key",
            vertexai=True,
        )
        generator = create_content_generator(config)
        assert str(generator._client.base_url).startswith(DEFAULT_VERTEX_BASE_URL)

    @pytest.mark.parametrize("auth_type", [AuthType.USE_OPENAI, AuthType.USE_VERTEX_AI])
    def test_missing_key_is_a_configuration_error(self, auth_type: AuthType) -> None:
        config = ContentGeneratorConfig(model="gpt-4o", auth_type=auth_type)
        with pytest.raises(ConfigurationError, match="No API key"):
            create_content_generator(config)

    def test_personal_login_uses_factory(self) -> None:
        personal = MagicMock(spec=OpenAIContentGenerator)
        factory = MagicMock(return_value=personal)
        config = ContentGeneratorConfig(
            model="gpt-4o",
            auth_type=AuthType.LOGIN_WITH_GOOGLE_PERSONAL,
            client_version="9.9.9",
        )

        generator = create_content_generator(config, personal_generator_factory=factory)

        assert generator is personal
        headers, auth_type = factory.call_args.args
        assert headers == {"User-Agent": build_user_agent("9.9.9")}
        assert auth_type == AuthType.LOGIN_WITH_GOOGLE_PERSONAL

    def test_personal_login_without_factory(self) -> None:
        config = ContentGeneratorConfig(
            model="gpt-4o", auth_type=AuthType.LOGIN_WITH_GOOGLE_PERSONAL
        )
        with pytest.raises(ConfigurationError, match="personal_generator_factory"):
            create_content_generator(config)

    def test_unsupported_auth_type(self) -> None:
        config = ContentGeneratorConfig(model="gpt-4o", auth_type=None)
        with pytest.raises(ConfigurationError, match="unsupported auth type"):
            create_content_generator(config)
