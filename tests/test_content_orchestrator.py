from __future__ import annotations

import asyncio

import pytest

from fixtures import QUIZ_JSON, Pending, StubProvider

from study_aid.content.errors import (
    ErrorKind,
    ProviderError,
    TransportError,
)
from study_aid.content.interpreter import PlainText, Quiz
from study_aid.content.orchestrator import RequestOrchestrator
from study_aid.quizzer.session import SessionState

ROME_QUIZ = (
    '[{"question":"Capital of Italy?",'
    '"options":["Rome","Paris","Madrid","Berlin"],"answer":"Rome"}]'
)


def test_notes_request_delivers_plain_text(provider, presenter) -> None:
    provider.queue("  # Photosynthesis\n- Light -> sugar  ")
    orchestrator = RequestOrchestrator(provider, presenter)

    outcome = asyncio.run(orchestrator.submit("Photosynthesis", "notes"))

    assert outcome.status == "delivered"
    assert outcome.content == PlainText("# Photosynthesis\n- Light -> sugar")
    assert presenter.names == ["loading", "plain_text"]
    assert presenter.last("plain_text").startswith("# Photosynthesis")
    assert "Photosynthesis" in provider.prompts[0]
    assert orchestrator.session is None


def test_quiz_round_trip_scores_one_of_one(provider, presenter) -> None:
    provider.queue(ROME_QUIZ)
    orchestrator = RequestOrchestrator(provider, presenter)

    outcome = asyncio.run(orchestrator.submit("Rome", "quiz"))
    assert outcome.status == "delivered"
    assert isinstance(outcome.content, Quiz)
    view = presenter.last("question")
    assert view.position == 1 and view.total == 1

    result = orchestrator.answer("Rome")

    assert result is not None and result.complete
    summary = presenter.last("complete")
    assert (summary.score, summary.total) == (1, 1)
    assert presenter.names == ["loading", "question", "complete"]


def test_prose_wrapped_quiz_is_delivered(provider, presenter) -> None:
    provider.queue(f"Sure! Here is your quiz:\n{QUIZ_JSON}\nGood luck!")
    orchestrator = RequestOrchestrator(provider, presenter)

    outcome = asyncio.run(orchestrator.submit("Rome", "quiz"))

    assert outcome.status == "delivered"
    assert presenter.last("question").total == 3


def test_malformed_quiz_reports_raw_text(provider, presenter) -> None:
    raw = "I'm sorry, I can't help with that."
    provider.queue(raw)
    orchestrator = RequestOrchestrator(provider, presenter)

    outcome = asyncio.run(orchestrator.submit("Rome", "quiz"))

    assert outcome.status == "failed"
    assert presenter.names == ["loading", "error"]
    event = presenter.last("error")
    assert event.kind is ErrorKind.QUIZ_PARSE_ERROR
    assert event.raw_text == raw
    assert orchestrator.session is None


@pytest.mark.parametrize("topic", ["", "   ", None])
def test_empty_topic_rejected_without_network(
    topic, provider, presenter
) -> None:
    orchestrator = RequestOrchestrator(provider, presenter)

    outcome = asyncio.run(orchestrator.submit(topic, "notes"))

    assert outcome.status == "failed"
    assert presenter.error_kinds() == [ErrorKind.EMPTY_TOPIC]
    assert "loading" not in presenter.names
    assert provider.prompts == []


def test_invalid_type_rejected_without_network(provider, presenter) -> None:
    orchestrator = RequestOrchestrator(provider, presenter)

    outcome = asyncio.run(orchestrator.submit("Rome", "poem"))

    assert outcome.status == "failed"
    assert presenter.error_kinds() == [ErrorKind.INVALID_CONTENT_TYPE]
    assert provider.prompts == []


def test_provider_failure_becomes_error_event(provider, presenter) -> None:
    provider.queue(ProviderError(503, "model overloaded"))
    orchestrator = RequestOrchestrator(provider, presenter)

    outcome = asyncio.run(orchestrator.submit("Rome", "facts"))

    assert outcome.status == "failed"
    event = presenter.last("error")
    assert event.kind is ErrorKind.PROVIDER_ERROR
    assert event.status_code == 503
    assert "model overloaded" in event.message


def test_timeout_becomes_transport_error(presenter) -> None:
    provider = StubProvider("too late", delay=5)
    orchestrator = RequestOrchestrator(provider, presenter, timeout=0.01)

    outcome = asyncio.run(orchestrator.submit("Rome", "notes"))

    assert outcome.status == "failed"
    assert isinstance(outcome.error, TransportError)
    assert presenter.names == ["loading", "error"]


def test_ready_for_next_submit_after_failure(provider, presenter) -> None:
    provider.queue(TransportError("offline"))
    provider.queue("Back online.")
    orchestrator = RequestOrchestrator(provider, presenter)

    async def scenario():
        await orchestrator.submit("Rome", "notes")
        return await orchestrator.submit("Rome", "notes")

    outcome = asyncio.run(scenario())

    assert outcome.status == "delivered"
    assert presenter.names == ["loading", "error", "loading", "plain_text"]


def test_unexpected_provider_exception_becomes_transport_error(
    provider, presenter, caplog
) -> None:
    provider.queue(ValueError("boom"))
    provider.queue("Recovered notes.")
    orchestrator = RequestOrchestrator(provider, presenter)

    async def scenario():
        failed = await orchestrator.submit("Rome", "notes")
        return failed, await orchestrator.submit("Rome", "notes")

    with caplog.at_level("ERROR"):
        failed, recovered = asyncio.run(scenario())

    assert failed.status == "failed"
    assert isinstance(failed.error, TransportError)
    assert "boom" in failed.error.message
    assert presenter.names == ["loading", "error", "loading", "plain_text"]
    assert presenter.error_kinds() == [ErrorKind.TRANSPORT_ERROR]
    assert recovered.status == "delivered"
    assert any(record.exc_info for record in caplog.records)


async def _wait_for_calls(provider: StubProvider, count: int) -> None:
    while len(provider.prompts) < count:
        await asyncio.sleep(0)


def test_quiz_then_notes_only_latest_reaches_presenter(presenter) -> None:
    slow_quiz = Pending(QUIZ_JSON)
    provider = StubProvider(slow_quiz, "Rome was founded in 753 BC.")
    orchestrator = RequestOrchestrator(provider, presenter)

    async def scenario():
        first = asyncio.create_task(orchestrator.submit("Rome", "quiz"))
        await _wait_for_calls(provider, 1)
        second = await orchestrator.submit("Rome", "notes")
        slow_quiz.gate.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first.status == "superseded"
    assert second.status == "delivered"
    assert presenter.names == ["loading", "loading", "plain_text"]
    assert orchestrator.session is None


def test_superseded_failure_is_silent(presenter) -> None:
    failing = Pending(ProviderError(500))
    provider = StubProvider(failing, "Fresh notes")
    orchestrator = RequestOrchestrator(provider, presenter)

    async def scenario():
        first = asyncio.create_task(orchestrator.submit("Rome", "notes"))
        await _wait_for_calls(provider, 1)
        second = await orchestrator.submit("Rome", "notes")
        failing.gate.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first.status == "superseded"
    assert second.status == "delivered"
    assert presenter.errors() == []


def test_superseded_unexpected_exception_is_silent(presenter) -> None:
    crashing = Pending(RuntimeError("socket closed"))
    provider = StubProvider(crashing, "Fresh notes")
    orchestrator = RequestOrchestrator(provider, presenter)

    async def scenario():
        first = asyncio.create_task(orchestrator.submit("Rome", "notes"))
        await _wait_for_calls(provider, 1)
        second = await orchestrator.submit("Rome", "notes")
        crashing.gate.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first.status == "superseded"
    assert second.status == "delivered"
    assert presenter.errors() == []


def test_new_quiz_replaces_previous_session(provider, presenter) -> None:
    provider.queue(QUIZ_JSON)
    provider.queue(ROME_QUIZ)
    orchestrator = RequestOrchestrator(provider, presenter)

    asyncio.run(orchestrator.submit("Rome", "quiz"))
    orchestrator.answer("Rome")
    first_session = orchestrator.session

    asyncio.run(orchestrator.submit("Rome", "quiz"))

    assert orchestrator.session is not first_session
    assert orchestrator.session.total == 1
    assert orchestrator.session.score == 0


def test_failed_request_keeps_active_session(provider, presenter) -> None:
    provider.queue(QUIZ_JSON)
    provider.queue("not json")
    orchestrator = RequestOrchestrator(provider, presenter)

    asyncio.run(orchestrator.submit("Rome", "quiz"))
    session = orchestrator.session
    asyncio.run(orchestrator.submit("Rome", "quiz"))

    assert orchestrator.session is session
    assert session.state is SessionState.IN_PROGRESS


def test_answer_without_session_reports_transition_error(presenter) -> None:
    orchestrator = RequestOrchestrator(StubProvider(), presenter)

    assert orchestrator.answer("Rome") is None
    assert orchestrator.skip() is None
    assert presenter.error_kinds() == [
        ErrorKind.INVALID_SESSION_TRANSITION,
        ErrorKind.INVALID_SESSION_TRANSITION,
    ]
    assert "skip" in presenter.errors()[1].message


def test_answer_after_completion_reports_error(provider, presenter) -> None:
    provider.queue(ROME_QUIZ)
    orchestrator = RequestOrchestrator(provider, presenter)
    asyncio.run(orchestrator.submit("Rome", "quiz"))
    orchestrator.answer("Rome")

    assert orchestrator.answer("Rome") is None
    assert presenter.error_kinds() == [ErrorKind.INVALID_SESSION_TRANSITION]
    assert orchestrator.session.score == 1


def test_skip_moves_to_next_question(provider, presenter) -> None:
    provider.queue(QUIZ_JSON)
    orchestrator = RequestOrchestrator(provider, presenter)
    asyncio.run(orchestrator.submit("Rome", "quiz"))

    outcome = orchestrator.skip()

    assert outcome is not None and outcome.response.skipped
    assert presenter.last("question").position == 2


def test_collaborators_are_injectable(provider, presenter) -> None:
    provider.queue("raw")
    calls = []

    def builder(topic, kind):
        calls.append(("build", topic, kind.value))
        return "custom prompt"

    def interpreter(raw, kind):
        calls.append(("interpret", raw, kind.value))
        return PlainText("interpreted")

    orchestrator = RequestOrchestrator(
        provider, presenter, prompt_builder=builder, interpreter=interpreter
    )
    asyncio.run(orchestrator.submit(" Rome ", "NOTES"))

    assert provider.prompts == ["custom prompt"]
    assert calls == [
        ("build", "Rome", "notes"),
        ("interpret", "raw", "notes"),
    ]
    assert presenter.last("plain_text") == "interpreted"


def test_finish_closes_quiz_and_reports_summary(provider, presenter) -> None:
    provider.queue(QUIZ_JSON)
    orchestrator = RequestOrchestrator(provider, presenter)
    asyncio.run(orchestrator.submit("Rome", "quiz"))
    orchestrator.answer("Rome")

    summary = orchestrator.finish()

    assert summary is not None
    assert (summary.score, summary.total) == (1, 3)
    assert presenter.last("complete") == summary
    assert orchestrator.session.state is SessionState.COMPLETE
    assert orchestrator.finish() is None
    assert presenter.error_kinds() == [ErrorKind.INVALID_SESSION_TRANSITION]


def test_finish_without_session_reports_transition_error(presenter) -> None:
    orchestrator = RequestOrchestrator(StubProvider(), presenter)

    assert orchestrator.finish() is None
    assert presenter.error_kinds() == [ErrorKind.INVALID_SESSION_TRANSITION]


def test_every_submit_emits_one_terminal_event(presenter) -> None:
    provider = StubProvider("notes", ROME_QUIZ, "", ProviderError(429))
    orchestrator = RequestOrchestrator(provider, presenter)

    async def scenario():
        for kind in ("notes", "quiz", "facts", "notes"):
            await orchestrator.submit("Rome", kind)

    asyncio.run(scenario())

    terminal = [n for n in presenter.names if n != "loading"]
    assert len(terminal) == 4
    assert presenter.names.count("loading") == 4
