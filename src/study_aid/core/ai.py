"""Shared AI client helpers."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from openai import AsyncOpenAI

__all__ = ["API_KEY_ENV", "load_client"]


API_KEY_ENV = "OPENAI_API_KEY"


def load_client(
    *, api_base: str | None = None, timeout: float | None = None
) -> AsyncOpenAI:
    """Initialize an async OpenAI client using environment-derived credentials.

    ``api_base`` points the client at any OpenAI-compatible endpoint.
    """
    load_dotenv()
    api_key = os.getenv(API_KEY_ENV)
    if not api_key:
        raise RuntimeError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    kwargs: dict[str, object] = {"api_key": api_key}
    if api_base:
        kwargs["base_url"] = api_base
    if timeout is not None:
        kwargs["timeout"] = timeout
    return AsyncOpenAI(**kwargs)
