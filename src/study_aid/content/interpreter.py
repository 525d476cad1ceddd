"""Turn raw model output into renderable content.

Notes and facts are passed through as trimmed prose. Quiz output is untrusted:
the model is asked for a bare JSON array but regularly wraps it in prose or a
Markdown fence, so :func:`parse_quiz` tries a fixed sequence of candidates:

1. the whole trimmed text;
2. the body of the first fenced code block;
3. each balanced ``[...]`` substring, in order of appearance.

The first candidate that decodes to an array holding a valid question wins.
When no candidate decodes at all, a :class:`QuizParseError` carrying the raw
text is raised; nothing is ever replaced by an empty quiz.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Iterator, List, Tuple, Union

from .errors import EmptyQuizError, EmptyResponseError, QuizParseError
from .prompts import QUIZ_OPTION_COUNT, ContentType

__all__ = [
    "PlainText",
    "QuizQuestion",
    "Quiz",
    "interpret",
    "parse_quiz",
    "validate_question",
    "serialize_quiz",
]


_FENCE_RE = re.compile(r"```(?:json)?\s*(.+?)```", re.DOTALL | re.IGNORECASE)


@dataclass(frozen=True)
class PlainText:
    text: str


@dataclass(frozen=True)
class QuizQuestion:
    """A validated multiple-choice question."""

    question: str
    options: Tuple[str, ...]
    answer: str

    def to_dict(self) -> dict[str, object]:
        return {
            "question": self.question,
            "options": list(self.options),
            "answer": self.answer,
        }


@dataclass(frozen=True)
class Quiz:
    """Ordered questions plus how many malformed entries were dropped."""

    questions: Tuple[QuizQuestion, ...]
    rejected: int = field(default=0, compare=False)

    def __len__(self) -> int:
        return len(self.questions)

    def __iter__(self) -> Iterator[QuizQuestion]:
        return iter(self.questions)

    def __getitem__(self, index: int) -> QuizQuestion:
        return self.questions[index]


Interpretation = Union[PlainText, Quiz]


def interpret(raw: str, content_type: ContentType | str) -> Interpretation:
    """Interpret ``raw`` provider output for ``content_type``."""

    kind = ContentType.parse(content_type)
    if kind is ContentType.QUIZ:
        return parse_quiz(raw)
    text = (raw or "").strip()
    if not text:
        raise EmptyResponseError()
    return PlainText(text)


def parse_quiz(raw: str) -> Quiz:
    """Parse and validate a quiz from untrusted model output.

    Candidates are decoded in order and the first array holding at least one
    valid question wins, so a stray ``[1]`` citation ahead of the quiz does
    not hide it.

    Raises:
        QuizParseError: no JSON array could be recovered from ``raw``.
        EmptyQuizError: arrays were found but no entry is a valid question.
    """

    raw = raw or ""
    decoded = False
    rejected = 0
    for data in _decoded_arrays(raw):
        decoded = True
        quiz = _validate_entries(data)
        if len(quiz):
            return quiz
        rejected = max(rejected, quiz.rejected)
    if not decoded:
        raise QuizParseError(
            "The quiz response could not be read as a JSON array.", raw
        )
    raise EmptyQuizError(
        "The quiz response did not contain any valid questions "
        f"({rejected} rejected).",
        raw,
    )


def _validate_entries(data: list) -> Quiz:
    questions: List[QuizQuestion] = []
    rejected = 0
    for item in data:
        try:
            questions.append(validate_question(item))
        except ValueError:
            rejected += 1
    return Quiz(tuple(questions), rejected=rejected)


def validate_question(item: Any) -> QuizQuestion:
    """Validate one decoded quiz entry.

    Requires a non-empty ``question`` string, exactly four string
    ``options`` and an ``answer`` equal to one of them. Strings are
    whitespace-trimmed before comparison. Raises ValueError when invalid.
    """

    if not isinstance(item, dict):
        raise ValueError("question entry must be an object")
    question = item.get("question")
    if not isinstance(question, str) or not question.strip():
        raise ValueError("question text is required")
    options = item.get("options")
    if not isinstance(options, list) or len(options) != QUIZ_OPTION_COUNT:
        raise ValueError(
            f"options must be a list of exactly {QUIZ_OPTION_COUNT} strings"
        )
    if not all(isinstance(option, str) for option in options):
        raise ValueError("options must all be strings")
    answer = item.get("answer")
    if not isinstance(answer, str):
        raise ValueError("answer must be a string")
    cleaned = tuple(option.strip() for option in options)
    answer = answer.strip()
    if answer not in cleaned:
        raise ValueError("answer must match one of the options")
    return QuizQuestion(question.strip(), cleaned, answer)


def serialize_quiz(quiz: Quiz) -> str:
    """Return the canonical JSON array for ``quiz``."""

    return json.dumps(
        [question.to_dict() for question in quiz.questions],
        ensure_ascii=False,
    )


def _decoded_arrays(raw: str) -> Iterator[list]:
    for candidate in _candidates(raw):
        try:
            data = json.loads(candidate)
        except (ValueError, RecursionError):
            continue
        if isinstance(data, list):
            yield data


def _candidates(raw: str) -> Iterator[str]:
    text = raw.strip()
    if not text:
        return
    yield text
    fenced = _FENCE_RE.search(text)
    if fenced:
        yield fenced.group(1).strip()
    for start, end in _outer_bracket_pairs(text):
        yield text[start : end + 1]


def _outer_bracket_pairs(text: str) -> List[Tuple[int, int]]:
    """Return outermost matched ``[...]`` spans in one pass.

    Quotes only open strings inside a bracket, so apostrophes and stray
    quotes in surrounding prose are ignored. A bracket that never closes
    does not hide balanced arrays nested after it.
    """

    pairs: List[Tuple[int, int]] = []
    stack: List[int] = []
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"' and stack:
            in_string = True
        elif char == "[":
            stack.append(index)
        elif char == "]" and stack:
            pairs.append((stack.pop(), index))

    pairs.sort()
    outer: List[Tuple[int, int]] = []
    covered = -1
    for start, end in pairs:
        if start > covered:
            outer.append((start, end))
            covered = end
    return outer
