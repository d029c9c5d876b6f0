"""Effective-model selection for a session.

Probes the primary model once with a minimal request and downgrades to the
lighter fallback model only when the backend answers 429. Every other
outcome keeps the configured model.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from contentgen.config import (
    DEFAULT_FLASH_MODEL,
    DEFAULT_MODEL,
    DEFAULT_OPENAI_BASE_URL,
)
from contentgen.errors import ProbeInconclusive

logger = logging.getLogger(__name__)

PROBE_TIMEOUT_SECONDS = 2.0


async def _probe_status(
    api_key: str,
    endpoint: str,
    model: str,
    timeout: float,
    transport: httpx.AsyncBaseTransport | None,
) -> int:
    """Send the probe request and return its HTTP status.

    Raises:
        ProbeInconclusive: On timeout or transport failure.
    """
    body = {
        "model": model,
        "messages": [{"role": "user", "content": "test"}],
        "max_tokens": 1,
        "temperature": 0,
    }
    headers = {"Authorization": f"Bearer {api_key}"}
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await asyncio.wait_for(
                client.post(endpoint, json=body, headers=headers), timeout
            )
    except asyncio.TimeoutError as exc:
        raise ProbeInconclusive(f"Probe timed out after {timeout}s") from exc
    except httpx.HTTPError as exc:
        raise ProbeInconclusive(f"Probe transport failure: {exc}") from exc
    return response.status_code


async def get_effective_model(
    api_key: str,
    configured_model: str,
    base_url: str | None = None,
    *,
    timeout: float = PROBE_TIMEOUT_SECONDS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Return the model to use for this session.

    Only the primary model is probed; any other configured model is returned
    unchanged without touching the network. Never raises.

    Args:
        api_key: Bearer token for the probe request.
        configured_model: The model the user asked for.
        base_url: API root; defaults to the public OpenAI endpoint.
        timeout: Upper bound on the probe, in seconds.
        transport: Optional httpx transport, mainly for tests.

    Returns:
        ``DEFAULT_FLASH_MODEL`` if the primary model is rate-limited,
        otherwise ``configured_model``.
    """
    if configured_model != DEFAULT_MODEL:
        return configured_model

    endpoint = f"{(base_url or DEFAULT_OPENAI_BASE_URL).rstrip('/')}/chat/completions"
    try:
        status = await _probe_status(
            api_key, endpoint, DEFAULT_MODEL, timeout, transport
        )
    except ProbeInconclusive as exc:
        logger.debug("Model probe inconclusive, keeping %s: %s", configured_model, exc)
        return configured_model
    except Exception:
        logger.debug("Model probe failed, keeping %s", configured_model, exc_info=True)
        return configured_model

    if status == 429:
        logger.info(
            "Your configured model (%s) was temporarily unavailable. "
            "Switched to %s for this session.",
            DEFAULT_MODEL,
            DEFAULT_FLASH_MODEL,
        )
        return DEFAULT_FLASH_MODEL
    return configured_model
