"""Content provider boundary and its OpenAI-backed implementation."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import openai

from study_aid.core.ai import load_client

from .errors import EmptyResponseError, ProviderError, TransportError

__all__ = ["ContentProvider", "OpenAIContentProvider"]


_SYSTEM_PROMPT = (
    "You are a friendly study assistant. Follow the requested output format "
    "exactly."
)


class ContentProvider(Protocol):
    """Anything that turns a prompt into raw model text."""

    async def generate(self, prompt: str) -> str:
        """Return the raw model response for ``prompt``."""


class OpenAIContentProvider:
    """Adapter for OpenAI-compatible chat completions.

    Performs exactly one request per :meth:`generate` call and never retries;
    SDK failures are translated into the content error taxonomy.
    """

    def __init__(
        self,
        *,
        model: str,
        temperature: float,
        max_output_tokens: int,
        request_timeout: float,
        api_base: str | None = None,
        client: Any | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._timeout = request_timeout
        self._logger = logger or logging.getLogger(__name__)
        if client is not None:
            self._client = client
        else:
            self._client = load_client(api_base=api_base)

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, prompt: str) -> str:
        self._logger.debug(
            "Requesting completion",
            extra={"model": self._model, "prompt_chars": len(prompt)},
        )
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": _SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._temperature,
                max_tokens=self._max_output_tokens,
                timeout=self._timeout,
            )
        except openai.APIStatusError as exc:
            raise ProviderError(
                exc.status_code, _provider_message(exc)
            ) from exc
        except openai.APITimeoutError as exc:
            raise TransportError(
                f"The model did not respond within {self._timeout:g}s."
            ) from exc
        except openai.APIConnectionError as exc:
            raise TransportError(
                f"Could not reach the model provider: {exc}"
            ) from exc
        except openai.APIError as exc:
            raise TransportError(
                f"The model provider returned an unusable response: {exc}"
            ) from exc

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise EmptyResponseError("The model returned no choices.")
        content = (choices[0].message.content or "").strip()
        if not content:
            finish_reason = getattr(choices[0], "finish_reason", None)
            message = "The model returned an empty response."
            if finish_reason and finish_reason != "stop":
                message = (
                    f"The model stopped without content ({finish_reason})."
                )
            raise EmptyResponseError(message)
        return content


def _provider_message(exc: openai.APIStatusError) -> Optional[str]:
    body = exc.body
    if isinstance(body, dict):
        error = body.get("error", body)
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message.strip():
                return message.strip()
    if isinstance(body, str) and body.strip():
        return body.strip()
    return exc.message or None
