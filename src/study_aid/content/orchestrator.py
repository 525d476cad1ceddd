"""Coordinate prompt building, generation, interpretation and quiz sessions.

The orchestrator owns the single "request in flight" slot of one UI surface.
Every :meth:`RequestOrchestrator.submit` takes a new sequence number; a
response that comes back after a newer submit started is dropped without
notifying the presenter, so the last submit always wins.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Protocol, Union

from study_aid.quizzer.session import (
    AnswerOutcome,
    QuestionView,
    QuizSession,
    QuizSummary,
)

from .errors import (
    ContentError,
    EmptyTopicError,
    ErrorEvent,
    InvalidSessionTransitionError,
    TransportError,
)
from .interpreter import PlainText, Quiz, interpret
from .prompts import ContentType, build_prompt
from .provider import ContentProvider

__all__ = [
    "DEFAULT_TIMEOUT_SECONDS",
    "Presenter",
    "SubmitOutcome",
    "RequestOrchestrator",
]


DEFAULT_TIMEOUT_SECONDS = 30.0

PromptBuilder = Callable[[str, ContentType], str]
Interpreter = Callable[[str, ContentType], Union[PlainText, Quiz]]
SubmitStatus = Literal["delivered", "failed", "superseded"]


class Presenter(Protocol):
    """Output channel from the core to whatever renders it."""

    def on_loading(self) -> None: ...

    def on_plain_text(self, text: str) -> None: ...

    def on_quiz_question(self, view: QuestionView) -> None: ...

    def on_quiz_complete(self, summary: QuizSummary) -> None: ...

    def on_error(self, event: ErrorEvent) -> None: ...


@dataclass(frozen=True)
class SubmitOutcome:
    request_id: int
    status: SubmitStatus
    content: Union[PlainText, Quiz, None] = None
    error: Optional[ContentError] = None


class RequestOrchestrator:
    def __init__(
        self,
        provider: ContentProvider,
        presenter: Presenter,
        *,
        prompt_builder: PromptBuilder = build_prompt,
        interpreter: Interpreter = interpret,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._provider = provider
        self._presenter = presenter
        self._build_prompt = prompt_builder
        self._interpret = interpreter
        self._timeout = timeout
        self._logger = logger or logging.getLogger(__name__)
        self._sequence = 0
        self._session: Optional[QuizSession] = None

    @property
    def session(self) -> Optional[QuizSession]:
        """The quiz session currently driven by the presenter, if any."""
        return self._session

    async def submit(
        self, topic: str, content_type: ContentType | str
    ) -> SubmitOutcome:
        self._sequence += 1
        request_id = self._sequence
        topic = (topic or "").strip()

        try:
            if not topic:
                raise EmptyTopicError()
            kind = ContentType.parse(content_type)
            prompt = self._build_prompt(topic, kind)
        except ContentError as exc:
            self._logger.info(
                "Rejected generation request",
                extra={"request_id": request_id, "kind": exc.kind.value},
            )
            self._presenter.on_error(exc.to_event())
            return SubmitOutcome(request_id, "failed", error=exc)

        self._logger.info(
            "Dispatching generation request",
            extra={
                "request_id": request_id,
                "content_type": kind.value,
                "topic": topic,
            },
        )
        self._presenter.on_loading()

        try:
            raw = await self._generate(prompt)
            if self._is_stale(request_id):
                return self._superseded(request_id)
            content = self._interpret(raw, kind)
        except ContentError as exc:
            if self._is_stale(request_id):
                return self._superseded(request_id)
            self._logger.warning(
                "Generation request failed",
                extra={
                    "request_id": request_id,
                    "kind": exc.kind.value,
                    "error": exc.message,
                },
            )
            self._presenter.on_error(exc.to_event())
            return SubmitOutcome(request_id, "failed", error=exc)

        if isinstance(content, Quiz):
            return self._deliver_quiz(request_id, content)

        self._session = None
        self._logger.info(
            "Delivered plain text",
            extra={"request_id": request_id, "chars": len(content.text)},
        )
        self._presenter.on_plain_text(content.text)
        return SubmitOutcome(request_id, "delivered", content=content)

    def answer(self, selected: str) -> Optional[AnswerOutcome]:
        """Answer the current question of the active quiz."""
        return self._step("answer", lambda session: session.answer(selected))

    def skip(self) -> Optional[AnswerOutcome]:
        return self._step("skip", lambda session: session.skip())

    def finish(self) -> Optional[QuizSummary]:
        """Close the active quiz now, scoring unanswered questions as missed."""
        try:
            if self._session is None:
                raise InvalidSessionTransitionError("finish", "awaiting quiz")
            summary = self._session.finish()
        except InvalidSessionTransitionError as exc:
            self._logger.info(
                "Ignored quiz input", extra={"error": exc.message}
            )
            self._presenter.on_error(exc.to_event())
            return None

        self._logger.info(
            "Quiz finished early",
            extra={
                "score": summary.score,
                "total": summary.total,
                "unanswered": sum(r.timed_out for r in summary.responses),
            },
        )
        self._presenter.on_quiz_complete(summary)
        return summary

    async def _generate(self, prompt: str) -> str:
        try:
            return await asyncio.wait_for(
                self._provider.generate(prompt), timeout=self._timeout
            )
        except asyncio.TimeoutError as exc:
            raise TransportError(
                f"No response from the model within {self._timeout:g}s."
            ) from exc
        except ContentError:
            raise
        except Exception as exc:
            self._logger.error(
                "Provider raised an unexpected error",
                exc_info=True,
                extra={"error_type": type(exc).__name__},
            )
            raise TransportError(
                f"The model request failed unexpectedly: {exc}"
            ) from exc

    def _deliver_quiz(self, request_id: int, quiz: Quiz) -> SubmitOutcome:
        session = QuizSession()
        try:
            first = session.load(quiz)
        except ContentError as exc:
            self._presenter.on_error(exc.to_event())
            return SubmitOutcome(request_id, "failed", error=exc)
        self._session = session
        self._logger.info(
            "Loaded quiz session",
            extra={
                "request_id": request_id,
                "questions": len(quiz),
                "rejected": quiz.rejected,
            },
        )
        self._presenter.on_quiz_question(first)
        return SubmitOutcome(request_id, "delivered", content=quiz)

    def _step(
        self, name: str, action: Callable[[QuizSession], AnswerOutcome]
    ) -> Optional[AnswerOutcome]:
        try:
            if self._session is None:
                raise InvalidSessionTransitionError(name, "awaiting quiz")
            outcome = action(self._session)
        except InvalidSessionTransitionError as exc:
            self._logger.info(
                "Ignored quiz input", extra={"error": exc.message}
            )
            self._presenter.on_error(exc.to_event())
            return None

        if outcome.summary is not None:
            self._logger.info(
                "Quiz complete",
                extra={
                    "score": outcome.summary.score,
                    "total": outcome.summary.total,
                },
            )
            self._presenter.on_quiz_complete(outcome.summary)
        elif outcome.next_question is not None:
            self._presenter.on_quiz_question(outcome.next_question)
        return outcome

    def _is_stale(self, request_id: int) -> bool:
        return request_id != self._sequence

    def _superseded(self, request_id: int) -> SubmitOutcome:
        self._logger.info(
            "Discarded superseded response",
            extra={"request_id": request_id, "latest": self._sequence},
        )
        return SubmitOutcome(request_id, "superseded")
