"""Quiz session state machine.

A session moves ``AWAITING_QUIZ -> IN_PROGRESS -> COMPLETE``, either one
answer at a time or all at once through :meth:`QuizSession.finish`. Scoring
works purely on the session's own state so it can be exercised without a UI
or a network. ``current_index`` and ``score`` only ever grow until the next
:meth:`QuizSession.load`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from study_aid.content.errors import (
    EmptyQuizError,
    InvalidSessionTransitionError,
)
from study_aid.content.interpreter import Quiz, QuizQuestion

__all__ = [
    "SessionState",
    "QuestionView",
    "QuestionResponse",
    "QuizSummary",
    "AnswerOutcome",
    "QuizSession",
]


class SessionState(str, Enum):
    AWAITING_QUIZ = "awaiting quiz"
    IN_PROGRESS = "in progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class QuestionView:
    """What the presentation layer shows for the current step."""

    question: str
    options: Tuple[str, ...]
    position: int
    total: int


@dataclass(frozen=True)
class QuestionResponse:
    """A user's response to a specific question."""

    question: str
    selected: Optional[str]
    answer: str
    is_correct: bool
    timed_out: bool = False

    @property
    def skipped(self) -> bool:
        return self.selected is None and not self.timed_out


@dataclass(frozen=True)
class QuizSummary:
    score: int
    total: int
    responses: Tuple[QuestionResponse, ...] = field(
        default=(), compare=False
    )

    @property
    def accuracy(self) -> float:
        if self.total == 0:
            return 0.0
        return self.score / self.total


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of one answer/skip transition.

    Exactly one of ``next_question`` and ``summary`` is set.
    """

    response: QuestionResponse
    next_question: Optional[QuestionView] = None
    summary: Optional[QuizSummary] = None

    @property
    def complete(self) -> bool:
        return self.summary is not None


class QuizSession:
    """Holds one quiz attempt: the questions, position and score."""

    def __init__(self) -> None:
        self._quiz: Optional[Quiz] = None
        self._index = 0
        self._score = 0
        self._responses: List[QuestionResponse] = []

    @property
    def state(self) -> SessionState:
        if self._quiz is None:
            return SessionState.AWAITING_QUIZ
        if self._index >= len(self._quiz):
            return SessionState.COMPLETE
        return SessionState.IN_PROGRESS

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def score(self) -> int:
        return self._score

    @property
    def total(self) -> int:
        return len(self._quiz) if self._quiz is not None else 0

    def load(self, quiz: Quiz) -> QuestionView:
        """Start a new attempt at ``quiz`` and return the first question."""

        if self.state is SessionState.IN_PROGRESS:
            raise InvalidSessionTransitionError("load a new quiz", self.state)
        if len(quiz) == 0:
            self._reset(None)
            raise EmptyQuizError("Cannot start a quiz with no questions.")
        self._reset(quiz)
        return self.current_view()

    def current_view(self) -> QuestionView:
        question = self._require_current("show a question")
        return QuestionView(
            question=question.question,
            options=question.options,
            position=self._index + 1,
            total=self.total,
        )

    def answer(self, selected: str) -> AnswerOutcome:
        """Score ``selected`` against the current question and advance."""

        question = self._require_current("answer")
        is_correct = selected == question.answer
        if is_correct:
            self._score += 1
        return self._advance(
            QuestionResponse(
                question=question.question,
                selected=selected,
                answer=question.answer,
                is_correct=is_correct,
            )
        )

    def skip(self) -> AnswerOutcome:
        """Advance past the current question without scoring it."""

        question = self._require_current("skip")
        return self._advance(
            QuestionResponse(
                question=question.question,
                selected=None,
                answer=question.answer,
                is_correct=False,
            )
        )

    def finish(self) -> QuizSummary:
        """End the attempt early, e.g. when its time limit runs out.

        Every question not yet answered is recorded as unanswered and scored
        as missed.
        """

        if self.state is not SessionState.IN_PROGRESS:
            raise InvalidSessionTransitionError("finish", self.state)
        assert self._quiz is not None
        for question in self._quiz.questions[self._index :]:
            self._responses.append(
                QuestionResponse(
                    question=question.question,
                    selected=None,
                    answer=question.answer,
                    is_correct=False,
                    timed_out=True,
                )
            )
        self._index = len(self._quiz)
        return self.summary()

    def summary(self) -> QuizSummary:
        if self.state is not SessionState.COMPLETE:
            raise InvalidSessionTransitionError("summarize", self.state)
        return QuizSummary(
            score=self._score,
            total=self.total,
            responses=tuple(self._responses),
        )

    def _advance(self, response: QuestionResponse) -> AnswerOutcome:
        self._responses.append(response)
        self._index += 1
        if self.state is SessionState.COMPLETE:
            return AnswerOutcome(response=response, summary=self.summary())
        return AnswerOutcome(
            response=response, next_question=self.current_view()
        )

    def _require_current(self, action: str) -> QuizQuestion:
        if self.state is not SessionState.IN_PROGRESS:
            raise InvalidSessionTransitionError(action, self.state)
        assert self._quiz is not None
        return self._quiz[self._index]

    def _reset(self, quiz: Optional[Quiz]) -> None:
        self._quiz = quiz
        self._index = 0
        self._score = 0
        self._responses = []
