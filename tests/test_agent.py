import asyncio
import time

import pytest

from conftest import PAGE_REPLY, BlockingCompletionClient, FakeCompletionClient
from pagecraft.agent import final_user_turn, generate_reply, process_user_request
from pagecraft.conversation import ConversationStore, Message, Role
from pagecraft.errors import (
    ConfigurationError,
    GenerationInProgressError,
    GenerationTimeoutError,
    RequestValidationError,
    ServiceError,
    SessionNotFoundError,
)
from pagecraft.llm import CompletionClient
from pagecraft.sessions import create_session, end_session, get_session


class SlowCompletionClient(CompletionClient):
    def complete(self, history, user_turn):
        time.sleep(0.5)
        return "too late"


def test_generate_reply_sends_history_and_final_turn_separately(fake_client):
    conversation = ConversationStore([Message(Role.USER, "a page for my bakery")])

    result = asyncio.run(generate_reply(conversation, "modern", fake_client))

    history, user_turn = fake_client.calls[0]
    assert user_turn == "a page for my bakery"
    assert len(history) == 2
    assert "modern" in history[1].content
    assert result.template.value == "modern"
    assert result.artifact.html.startswith("<header>Acme</header>")
    assert result.artifact.css == "header { color: red; }"
    assert len(conversation) == 1


def test_unknown_template_never_reaches_client(fake_client):
    conversation = ConversationStore([Message(Role.USER, "hi")])
    with pytest.raises(ConfigurationError):
        asyncio.run(generate_reply(conversation, "enterprise", fake_client))
    assert fake_client.calls == []


@pytest.mark.parametrize(
    "conversation",
    [
        None,
        ConversationStore(),
        ConversationStore([Message(Role.USER, "   ")]),
        ConversationStore([Message(Role.USER, "hi"), Message(Role.ASSISTANT, "hello")]),
    ],
)
def test_final_user_turn_validation(conversation):
    with pytest.raises(RequestValidationError):
        final_user_turn(conversation)


def test_response_is_newline_normalized():
    client = FakeCompletionClient(replies=["Page:\n```html<p>x</p>\n```"])
    conversation = ConversationStore([Message(Role.USER, "hi")])
    result = asyncio.run(generate_reply(conversation, "basic", client))
    assert result.response == "Page:\n```html\n<p>x</p>\n```"


def test_empty_model_text_is_service_error():
    client = FakeCompletionClient(replies=["   "])
    conversation = ConversationStore([Message(Role.USER, "hi")])
    with pytest.raises(ServiceError):
        asyncio.run(generate_reply(conversation, "basic", client))


def test_deadline_raises_timeout_error():
    conversation = ConversationStore([Message(Role.USER, "hi")])
    with pytest.raises(GenerationTimeoutError):
        asyncio.run(generate_reply(conversation, "basic", SlowCompletionClient(), timeout=0.05))


def test_session_turn_appends_user_then_assistant(fake_client):
    session = create_session("basic")

    processed = asyncio.run(process_user_request(session, "a landing page", fake_client))

    messages = session.conversation.all()
    assert [m.role for m in messages] == [Role.USER, Role.ASSISTANT]
    assert messages[1].content == PAGE_REPLY
    assert processed.rebuilt
    assert processed.render_token == session.render_state.token > 0
    assert session.status == "ready"


def test_failed_call_keeps_only_user_turn():
    session = create_session("basic")
    client = FakeCompletionClient(error=ServiceError("quota exceeded"))

    with pytest.raises(ServiceError):
        asyncio.run(process_user_request(session, "a landing page", client))

    assert [m.role for m in session.conversation] == [Role.USER]
    assert session.status == "error"
    assert session.last_error == "quota exceeded"
    assert not session.lock.locked()


def test_unexpected_client_error_marks_session_failed():
    session = create_session("basic")
    client = FakeCompletionClient(error=KeyError("boom"))

    with pytest.raises(ServiceError, match="boom") as exc_info:
        asyncio.run(process_user_request(session, "a landing page", client))

    assert isinstance(exc_info.value.__cause__, KeyError)
    assert [m.role for m in session.conversation] == [Role.USER]
    assert session.status == "error"
    assert "boom" in session.last_error
    assert not session.lock.locked()


def test_retry_after_failure_replays_history():
    session = create_session("basic")
    with pytest.raises(ServiceError):
        asyncio.run(
            process_user_request(session, "first try", FakeCompletionClient(error=ServiceError("down")))
        )

    client = FakeCompletionClient(replies=["ok"])
    asyncio.run(process_user_request(session, "second try", client))

    history, user_turn = client.calls[0]
    assert user_turn == "second try"
    assert [e.content for e in history[2:]] == ["first try"]
    assert [m.content for m in session.conversation] == ["first try", "second try", "ok"]


def test_reply_without_code_keeps_previous_preview(fake_client):
    session = create_session("basic")
    asyncio.run(process_user_request(session, "make a page", fake_client))
    token = session.render_state.token

    processed = asyncio.run(
        process_user_request(session, "thanks", FakeCompletionClient(replies=["You're welcome"]))
    )

    assert not processed.rebuilt
    assert session.render_state.token == token


def test_template_change_applies_to_session(fake_client):
    session = create_session("basic")
    asyncio.run(process_user_request(session, "a page", fake_client, template="saas"))
    assert session.template.value == "saas"


def test_invalid_template_on_turn_appends_nothing(fake_client):
    session = create_session("basic")
    with pytest.raises(ConfigurationError):
        asyncio.run(process_user_request(session, "a page", fake_client, template="enterprise"))
    assert session.conversation.is_empty
    assert fake_client.calls == []


def test_empty_content_appends_nothing(fake_client):
    session = create_session("basic")
    with pytest.raises(RequestValidationError):
        asyncio.run(process_user_request(session, "  ", fake_client))
    assert session.conversation.is_empty


def test_second_submission_while_in_flight_is_rejected():
    session = create_session("basic")
    client = BlockingCompletionClient()

    async def scenario():
        first = asyncio.create_task(process_user_request(session, "first", client))
        while not client.started.is_set():
            await asyncio.sleep(0.01)
        with pytest.raises(GenerationInProgressError):
            await process_user_request(session, "second", client)
        client.release.set()
        await first

    asyncio.run(scenario())
    assert [m.content for m in session.conversation] == ["first", "done"]


def test_session_cannot_end_while_request_in_flight():
    session = create_session("basic")
    client = BlockingCompletionClient()

    async def scenario():
        first = asyncio.create_task(process_user_request(session, "first", client))
        while not client.started.is_set():
            await asyncio.sleep(0.01)
        with pytest.raises(GenerationInProgressError):
            end_session(session.id)
        client.release.set()
        await first

    asyncio.run(scenario())
    end_session(session.id)
    with pytest.raises(SessionNotFoundError):
        get_session(session.id)
