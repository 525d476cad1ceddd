"""Error taxonomy shared by the generation pipeline and the quiz session."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

__all__ = [
    "ErrorKind",
    "ErrorEvent",
    "ContentError",
    "InvalidContentTypeError",
    "EmptyTopicError",
    "TransportError",
    "ProviderError",
    "EmptyResponseError",
    "QuizParseError",
    "EmptyQuizError",
    "InvalidSessionTransitionError",
]


class ErrorKind(str, Enum):
    """Kinds of failure reported to the presentation layer."""

    INVALID_CONTENT_TYPE = "InvalidContentType"
    EMPTY_TOPIC = "EmptyTopic"
    TRANSPORT_ERROR = "TransportError"
    PROVIDER_ERROR = "ProviderError"
    EMPTY_RESPONSE = "EmptyResponse"
    QUIZ_PARSE_ERROR = "QuizParseError"
    EMPTY_QUIZ = "EmptyQuiz"
    INVALID_SESSION_TRANSITION = "InvalidSessionTransition"


@dataclass(frozen=True)
class ErrorEvent:
    """Typed error payload delivered through ``Presenter.on_error``."""

    kind: ErrorKind
    message: str
    raw_text: Optional[str] = None
    status_code: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.raw_text is not None:
            payload["raw_text"] = self.raw_text
        if self.status_code is not None:
            payload["status_code"] = self.status_code
        return payload


class ContentError(RuntimeError):
    """Base class for every failure the orchestrator reports to the user."""

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_event(self) -> ErrorEvent:
        return ErrorEvent(kind=self.kind, message=self.message)


class InvalidContentTypeError(ContentError):
    kind = ErrorKind.INVALID_CONTENT_TYPE

    def __init__(self, content_type: object) -> None:
        super().__init__(
            "Unsupported content type {0!r}; expected one of notes, facts, "
            "quiz.".format(content_type)
        )
        self.content_type = content_type


class EmptyTopicError(ContentError):
    kind = ErrorKind.EMPTY_TOPIC

    def __init__(self, message: str = "Please enter a topic.") -> None:
        super().__init__(message)


class TransportError(ContentError):
    """The provider could not be reached or did not answer in time."""

    kind = ErrorKind.TRANSPORT_ERROR


class ProviderError(ContentError):
    """The provider answered with a non-success status."""

    kind = ErrorKind.PROVIDER_ERROR

    def __init__(
        self,
        status_code: int,
        provider_message: Optional[str] = None,
    ) -> None:
        message = f"Provider returned HTTP {status_code}"
        if provider_message:
            message = f"{message}: {provider_message}"
        super().__init__(message)
        self.status_code = status_code
        self.provider_message = provider_message

    def to_event(self) -> ErrorEvent:
        return ErrorEvent(
            kind=self.kind,
            message=self.message,
            status_code=self.status_code,
        )


class EmptyResponseError(ContentError):
    kind = ErrorKind.EMPTY_RESPONSE

    def __init__(
        self, message: str = "The model returned an empty response."
    ) -> None:
        super().__init__(message)


class _RawTextError(ContentError):
    """Error that keeps the offending model output for debugging."""

    def __init__(self, message: str, raw_text: str) -> None:
        super().__init__(message)
        self.raw_text = raw_text

    def to_event(self) -> ErrorEvent:
        return ErrorEvent(
            kind=self.kind,
            message=self.message,
            raw_text=self.raw_text,
        )


class QuizParseError(_RawTextError):
    kind = ErrorKind.QUIZ_PARSE_ERROR


class EmptyQuizError(_RawTextError):
    kind = ErrorKind.EMPTY_QUIZ

    def __init__(
        self,
        message: str = "The quiz contains no usable questions.",
        raw_text: str = "",
    ) -> None:
        super().__init__(message, raw_text)


class InvalidSessionTransitionError(ContentError):
    kind = ErrorKind.INVALID_SESSION_TRANSITION

    def __init__(self, action: str, state: object) -> None:
        state_name = getattr(state, "value", state)
        super().__init__(f"Cannot {action} while the quiz is {state_name}.")
        self.action = action
        self.state = state
