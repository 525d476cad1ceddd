"""Rich-powered presenter and interactive quiz loop for the terminal."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Literal, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from study_aid.content.errors import ErrorEvent

from .session import (
    QuestionResponse,
    QuestionView,
    QuizSummary,
    SessionState,
)

if TYPE_CHECKING:  # pragma: no cover - import cycle with the orchestrator
    from study_aid.content.orchestrator import RequestOrchestrator

__all__ = [
    "RichPresenter",
    "QuizCommand",
    "format_remaining",
    "parse_quiz_command",
    "run_console_quiz",
]


InputProvider = Callable[[], str]
Clock = Callable[[], float]
ExitAction = Literal["complete", "quit", "timeout", "empty"]

_RAW_PREVIEW_CHARS = 1200


@dataclass(frozen=True)
class QuizCommand:
    type: Literal["select", "skip", "quit"]
    choice: Optional[str] = None


def _choice_key(index: int) -> str:
    return chr(ord("A") + index)


def format_remaining(seconds: float) -> str:
    whole = max(0, int(seconds))
    return f"{whole // 60}:{whole % 60:02d}"


def parse_quiz_command(
    raw: str | None, options: Sequence[str]
) -> QuizCommand | None:
    """Map console input onto a quiz command.

    Accepts an option letter (``a``), its number (``1``), the option text
    itself, ``s``/``skip`` and ``q``/``quit``.
    """

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"q", "quit", "exit"}:
        return QuizCommand("quit")
    if lowered in {"s", "skip"}:
        return QuizCommand("skip")
    if len(text) == 1:
        if text.isdigit():
            index = int(text) - 1
        else:
            index = ord(text.upper()) - ord("A")
        if 0 <= index < len(options):
            return QuizCommand("select", options[index])
        return None
    for option in options:
        if option.lower() == lowered:
            return QuizCommand("select", option)
    return None


class RichPresenter:
    """Render orchestrator events onto a Rich console."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def on_loading(self) -> None:
        self.console.print(Text("Generating...", style="dim"))

    def on_plain_text(self, text: str) -> None:
        self.console.print()
        self.console.print(Markdown(text))

    def on_quiz_question(self, view: QuestionView) -> None:
        header = Text.assemble(
            (f"Question {view.position}", "bold cyan"),
            (f" / {view.total}", "dim"),
        )
        self.console.print()
        self.console.rule(header)
        self.console.print(Text(view.question, style="bold"))

        table = Table(show_header=False, box=box.SIMPLE, expand=True)
        table.add_column("Key", justify="center", style="cyan")
        table.add_column("Choice")
        for index, option in enumerate(view.options):
            table.add_row(_choice_key(index), option)
        self.console.print(table)

        keys = ", ".join(_choice_key(i) for i in range(len(view.options)))
        self.console.print(
            Text(f"Commands: choices [{keys}], s (skip), q (quit)", style="dim")
        )

    def on_quiz_complete(self, summary: QuizSummary) -> None:
        self.console.print()
        self.console.rule(Text("Quiz Complete!", style="bold magenta"))

        overview = Table(
            show_header=False,
            box=box.MINIMAL_DOUBLE_HEAD,
            expand=False,
        )
        overview.add_column("Metric", style="bold")
        overview.add_column("Value", justify="right")
        overview.add_row("Score", f"{summary.score} / {summary.total}")
        overview.add_row("Accuracy", f"{summary.accuracy * 100:.1f}%")
        self.console.print(overview)

        if not summary.responses:
            return
        responses = Table(title="Responses", box=box.SIMPLE, expand=True)
        responses.add_column("#", justify="right")
        responses.add_column("Question", overflow="fold")
        responses.add_column("Your answer")
        responses.add_column("Correct answer")
        responses.add_column("Result", justify="center")
        for idx, response in enumerate(summary.responses, start=1):
            responses.add_row(
                str(idx),
                response.question,
                _response_label(response),
                response.answer,
                "✅" if response.is_correct else "❌",
            )
        self.console.print(responses)

    def on_error(self, event: ErrorEvent) -> None:
        self.console.print(
            Panel(
                event.message,
                title=event.kind.value,
                border_style="red",
            )
        )
        if event.raw_text:
            preview = event.raw_text[:_RAW_PREVIEW_CHARS]
            if len(event.raw_text) > _RAW_PREVIEW_CHARS:
                preview += "\n..."
            self.console.print(
                Panel(
                    Text(preview),
                    title="Model output",
                    border_style="dim",
                )
            )


def _response_label(response: QuestionResponse) -> str:
    if response.timed_out:
        return "(time up)"
    if response.skipped:
        return "(skipped)"
    return str(response.selected)


def run_console_quiz(
    orchestrator: RequestOrchestrator,
    console: Console,
    input_provider: InputProvider,
    *,
    time_limit: Optional[float] = None,
    clock: Clock = time.monotonic,
) -> ExitAction:
    """Feed console input into the orchestrator until the quiz ends.

    With ``time_limit`` (seconds) the attempt is closed once the deadline
    passes: an answer typed after the deadline is discarded and every
    remaining question is scored as missed.
    """

    session = orchestrator.session
    if session is None or session.state is not SessionState.IN_PROGRESS:
        return "empty"

    deadline = clock() + time_limit if time_limit else None
    while session.state is SessionState.IN_PROGRESS:
        if deadline is not None:
            remaining = deadline - clock()
            if remaining <= 0:
                return _time_up(orchestrator, console)
            console.print(f"[dim]Time left: {format_remaining(remaining)}[/]")
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            return "quit"
        if deadline is not None and clock() >= deadline:
            return _time_up(orchestrator, console)
        command = parse_quiz_command(raw, session.current_view().options)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print("\n[bold yellow]Ending quiz early.[/]")
            return "quit"
        if command.type == "skip":
            orchestrator.skip()
        else:
            orchestrator.answer(command.choice or "")
    return "complete"


def _time_up(
    orchestrator: RequestOrchestrator, console: Console
) -> ExitAction:
    console.print("\n[bold yellow]Time is up.[/]")
    orchestrator.finish()
    return "timeout"
