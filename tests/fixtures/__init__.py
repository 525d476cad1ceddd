"""Shared testing fixtures and stubs for the study_aid test suite."""

from .openai_client import StubAsyncClient, completion  # noqa: F401
from .presenter import RecordingPresenter  # noqa: F401
from .provider import Pending, StubProvider  # noqa: F401
from .quiz import QUIZ_JSON, quiz_payload  # noqa: F401

__all__ = [
    "Pending",
    "QUIZ_JSON",
    "RecordingPresenter",
    "StubAsyncClient",
    "StubProvider",
    "completion",
    "quiz_payload",
]
