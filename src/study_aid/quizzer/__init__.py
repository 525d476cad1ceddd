from .session import (
    AnswerOutcome,
    QuestionResponse,
    QuestionView,
    QuizSession,
    QuizSummary,
    SessionState,
)
from .console import (
    QuizCommand,
    RichPresenter,
    parse_quiz_command,
    run_console_quiz,
)

__all__ = [
    "AnswerOutcome",
    "QuestionResponse",
    "QuestionView",
    "QuizSession",
    "QuizSummary",
    "SessionState",
    "QuizCommand",
    "RichPresenter",
    "parse_quiz_command",
    "run_console_quiz",
]
