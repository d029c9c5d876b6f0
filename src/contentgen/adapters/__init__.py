"""Content generator implementations."""

from contentgen.adapters.base import ContentGenerator
from contentgen.adapters.openai_adapter import OpenAIContentGenerator

__all__ = [
    "ContentGenerator",
    "OpenAIContentGenerator",
]
