"""Shared Anthropic client configuration"""
import os
from functools import lru_cache

from anthropic import Anthropic, AsyncAnthropic
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-20250514")
MAX_TOKENS = int(os.getenv("ANTHROPIC_MAX_TOKENS", "1024"))


class ConfigurationError(RuntimeError):
    """Required settings are missing from the environment"""


def _api_key() -> str:
    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        raise ConfigurationError("ANTHROPIC_API_KEY is not set.")
    return api_key


@lru_cache(maxsize=1)
def get_client() -> Anthropic:
    """Synchronous client used by the interactive agent"""
    return Anthropic(api_key=_api_key())


@lru_cache(maxsize=1)
def get_async_client() -> AsyncAnthropic:
    """Async client used by the concurrent workflow"""
    return AsyncAnthropic(api_key=_api_key())


def response_text(response) -> str:
    """Join the text blocks of a Messages API response"""
    return "".join(
        block.text for block in response.content
        if getattr(block, "type", None) == "text"
    )
