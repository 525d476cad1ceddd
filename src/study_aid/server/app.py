"""HTTP backend relaying generation requests to the content provider."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from study_aid.content.config import StudyAidConfig
from study_aid.content.errors import (
    ContentError,
    EmptyTopicError,
    ErrorKind,
    TransportError,
)
from study_aid.content.prompts import build_prompt
from study_aid.content.provider import ContentProvider, OpenAIContentProvider

__all__ = ["GenerateRequest", "GenerateResponse", "create_app"]


_STATUS_BY_KIND = {
    ErrorKind.EMPTY_TOPIC: 400,
    ErrorKind.INVALID_CONTENT_TYPE: 400,
    ErrorKind.PROVIDER_ERROR: 502,
    ErrorKind.EMPTY_RESPONSE: 502,
    ErrorKind.TRANSPORT_ERROR: 504,
}


class GenerateRequest(BaseModel):
    topic: str
    type: str


class GenerateResponse(BaseModel):
    content: str


def get_provider(request: Request) -> ContentProvider:
    return request.app.state.provider


def create_app(
    *,
    config: StudyAidConfig,
    provider: Optional[ContentProvider] = None,
    logger: Optional[logging.Logger] = None,
) -> FastAPI:
    """Build the FastAPI app; ``provider`` defaults to the OpenAI adapter."""

    log = logger or logging.getLogger(__name__)
    if provider is None:
        provider = OpenAIContentProvider(
            model=config.provider.model,
            temperature=config.provider.temperature,
            max_output_tokens=config.provider.max_output_tokens,
            request_timeout=config.provider.request_timeout_seconds,
            api_base=config.provider.api_base,
            logger=log,
        )
    timeout = config.generation.timeout_seconds

    app = FastAPI(
        title="study-aid",
        description="Generates study notes, fun facts and quizzes.",
    )
    app.state.provider = provider
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/generate", response_model=GenerateResponse)
    async def generate(
        payload: GenerateRequest,
        provider: ContentProvider = Depends(get_provider),
    ) -> GenerateResponse:
        try:
            topic = payload.topic.strip()
            if not topic:
                raise EmptyTopicError()
            prompt = build_prompt(topic, payload.type)
            log.info(
                "Relaying generation request",
                extra={"content_type": payload.type, "topic": topic},
            )
            try:
                content = await asyncio.wait_for(
                    provider.generate(prompt), timeout=timeout
                )
            except asyncio.TimeoutError as exc:
                raise TransportError(
                    f"No response from the model within {timeout:g}s."
                ) from exc
            except ContentError:
                raise
            except Exception as exc:
                log.error(
                    "Provider raised an unexpected error",
                    exc_info=True,
                    extra={"error_type": type(exc).__name__},
                )
                raise TransportError(
                    f"The model request failed unexpectedly: {exc}"
                ) from exc
        except ContentError as exc:
            status = _STATUS_BY_KIND.get(exc.kind, 500)
            log.warning(
                "Generation request failed",
                extra={"kind": exc.kind.value, "status": status},
            )
            raise HTTPException(
                status_code=status,
                detail={"kind": exc.kind.value, "message": exc.message},
            ) from exc
        return GenerateResponse(content=content)

    return app
