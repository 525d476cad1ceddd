"""Prompt templates for each supported content type."""

from __future__ import annotations

from enum import Enum

from .errors import InvalidContentTypeError

__all__ = ["ContentType", "build_prompt", "QUIZ_QUESTION_COUNT"]


QUIZ_QUESTION_COUNT = 5
QUIZ_OPTION_COUNT = 4


class ContentType(str, Enum):
    NOTES = "notes"
    FACTS = "facts"
    QUIZ = "quiz"

    @classmethod
    def parse(cls, value: object) -> "ContentType":
        """Return the member for ``value`` or raise InvalidContentTypeError."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidContentTypeError(value)


_QUIZ_EXAMPLE = """[
    {
        "question": "What is the powerhouse of the cell?",
        "options": ["Nucleus", "Ribosome", "Mitochondrion", "Golgi apparatus"],
        "answer": "Mitochondrion"
    }
]"""


def _notes_prompt(topic: str) -> str:
    return (
        f'Write concise study notes on "{topic}" in Markdown. '
        "Use headings and bullet points for the key concepts, definitions "
        "and examples a student should remember."
    )


def _facts_prompt(topic: str) -> str:
    return (
        f'Share exactly 3 surprising or fun facts about "{topic}". '
        "Number them 1 to 3 and keep each fact to one or two sentences."
    )


def _quiz_prompt(topic: str) -> str:
    return (
        f"Create a {QUIZ_QUESTION_COUNT}-question multiple-choice quiz on "
        f'"{topic}".\n'
        "IMPORTANT: Respond with ONLY a valid JSON array of objects. Do not "
        "include any text before or after the JSON array.\n"
        'Each object must have three keys: "question" (string), "options" '
        f"(an array of exactly {QUIZ_OPTION_COUNT} strings), and "
        '"answer" (a string that exactly matches one of the options).\n'
        f"Example format:\n{_QUIZ_EXAMPLE}"
    )


_BUILDERS = {
    ContentType.NOTES: _notes_prompt,
    ContentType.FACTS: _facts_prompt,
    ContentType.QUIZ: _quiz_prompt,
}


def build_prompt(topic: str, content_type: ContentType | str) -> str:
    """Return the model prompt for ``topic`` and ``content_type``.

    Raises:
        InvalidContentTypeError: ``content_type`` is not notes, facts or quiz.
    """
    kind = ContentType.parse(content_type)
    return _BUILDERS[kind](topic)
