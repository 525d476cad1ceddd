"""Content generation pipeline: prompts, provider, interpretation."""

from .errors import (
    ContentError,
    EmptyQuizError,
    EmptyResponseError,
    EmptyTopicError,
    ErrorEvent,
    ErrorKind,
    InvalidContentTypeError,
    InvalidSessionTransitionError,
    ProviderError,
    QuizParseError,
    TransportError,
)
from .interpreter import (
    PlainText,
    Quiz,
    QuizQuestion,
    interpret,
    parse_quiz,
    serialize_quiz,
    validate_question,
)
from .prompts import ContentType, build_prompt
from .provider import ContentProvider, OpenAIContentProvider

__all__ = [
    "ContentError",
    "EmptyQuizError",
    "EmptyResponseError",
    "EmptyTopicError",
    "ErrorEvent",
    "ErrorKind",
    "InvalidContentTypeError",
    "InvalidSessionTransitionError",
    "ProviderError",
    "QuizParseError",
    "TransportError",
    "PlainText",
    "Quiz",
    "QuizQuestion",
    "interpret",
    "parse_quiz",
    "serialize_quiz",
    "validate_question",
    "ContentType",
    "build_prompt",
    "ContentProvider",
    "OpenAIContentProvider",
]
