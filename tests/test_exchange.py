"""Tests for the interview message exchange loop."""

import asyncio

import pytest

from models.session_models import InterviewState, TranscriptMessage, USER_ROLE
from services.interview import prompts
from services.interview.exchange import MessageExchange


@pytest.fixture
def exchange(completion_client, message_dal, workflow_dal):
    return MessageExchange(completion_client, message_dal, workflow_dal)


@pytest.fixture
async def session(session_dal):
    return await session_dal.create_session("Acme Plumbing")


def bot(text):
    return TranscriptMessage(text=text, is_bot=True)


def user(text):
    return TranscriptMessage(text=text, is_bot=False)


async def test_empty_session_gets_opening_message(exchange, session, message_dal, fake_openai):
    fake_openai.queue_text(f"Thanks! {prompts.DISCOVERY_QUESTIONS[1][0]}")

    result = await exchange.send_turn(session.id, "Customers phone us for a repair", [])

    assert result.transcript[0].text == prompts.OPENING_MESSAGE
    assert result.transcript[0].is_bot is True
    assert [m.is_bot for m in result.transcript] == [True, False, True]
    assert result.state is InterviewState.AWAITING_Q2
    assert result.warnings == []

    rows = await message_dal.list_messages(session.id)
    assert [row.content for row in rows] == [m.text for m in result.transcript]


async def test_opening_message_stored_once_under_concurrent_turns(exchange, session, message_dal, fake_openai):
    fake_openai.queue_text("First reply")
    fake_openai.queue_text("Second reply")

    await asyncio.gather(
        exchange.send_turn(session.id, "first", []),
        exchange.send_turn(session.id, "second", []),
    )

    rows = await message_dal.list_messages(session.id)
    assert sum(1 for row in rows if row.content == prompts.OPENING_MESSAGE) == 1
    assert rows[0].content == prompts.OPENING_MESSAGE
    assert len(rows) == 5


async def test_request_carries_instruction_transcript_and_single_function(exchange, session, fake_openai):
    fake_openai.queue_text("Who answers the phone?")

    await exchange.send_turn(session.id, "Customers phone us", [])

    request = fake_openai.calls[0]
    assert request["model"] == "gpt-4.1"
    assert request["temperature"] == 0.2
    assert request["tool_choice"] == "auto"
    assert [tool["name"] for tool in request["tools"]] == ["add_workflow"]
    assert request["input"][0]["role"] == "system"
    assert "WorkflowSleuth" in request["input"][0]["content"]
    assert request["input"][-1] == {"type": "message", "role": "user", "content": "Customers phone us"}


async def test_mid_interview_turn_writes_no_workflow(exchange, session, workflow_dal, message_dal, fake_openai):
    prior = [
        bot(prompts.OPENING_MESSAGE),
        user("A customer calls to book a repair"),
        bot(f"Got it. {prompts.DISCOVERY_QUESTIONS[1][0]}"),
        user("Scheduler books it, technician fixes it, accounting invoices"),
        bot(f"Thanks. {prompts.DISCOVERY_QUESTIONS[6][0]}"),
        user("Job sheets and invoices"),
    ]
    fake_openai.queue_text(f"Understood. {prompts.DISCOVERY_QUESTIONS[7][0]}")

    result = await exchange.send_turn(session.id, "We use QuickBooks and a paper intake form", prior)

    assert result.workflow is None
    assert result.state is InterviewState.AWAITING_Q8
    assert await workflow_dal.count_workflows(session.id) == 0
    assert len(result.transcript) == 8
    assert len(fake_openai.calls[0]["input"]) == 2 + 7
    assert await message_dal.count_messages(session.id) == 2


async def test_valid_function_call_persists_exactly_one_record(
    exchange, session, workflow_dal, fake_openai, complete_workflow_args
):
    fake_openai.queue_function_call(complete_workflow_args)

    result = await exchange.send_turn(session.id, "Yes, that's right", [bot("Does that sound right?")])

    assert result.state is InterviewState.SAVED
    assert result.workflow_count == 1
    assert '"Invoice Approval"' in result.reply
    assert result.reply.endswith(prompts.CONTINUE_SUFFIX)

    stored = await workflow_dal.list_workflows(session.id)
    assert len(stored) == 1
    record = stored[0]
    assert record.title == "Invoice Approval"
    assert record.start_event == "Technician submits a completed job sheet"
    assert record.end_event == "Customer invoice is sent"
    assert record.people == ["Scheduler", "Technician"]
    assert record.systems == ["QuickBooks"]
    assert record.pain_point == "Invoices wait 3 days for approval"
    assert result.workflow.id == record.id


async def test_many_workflows_framing_at_threshold(
    completion_client, message_dal, workflow_dal, session, fake_openai, complete_workflow_args
):
    exchange = MessageExchange(completion_client, message_dal, workflow_dal, workflow_count_threshold=1)
    fake_openai.queue_function_call(complete_workflow_args)

    result = await exchange.send_turn(session.id, "Yes", [bot("Does that sound right?")])

    assert result.reply.endswith(prompts.MANY_WORKFLOWS_SUFFIX)


@pytest.mark.parametrize("missing", ["title", "pain_point", "people"])
async def test_missing_field_asks_for_clarification(
    exchange, session, workflow_dal, fake_openai, complete_workflow_args, missing
):
    del complete_workflow_args[missing]
    fake_openai.queue_function_call(complete_workflow_args)

    result = await exchange.send_turn(session.id, "Yes", [bot("Does that sound right?")])

    assert result.reply == prompts.CLARIFY_REPLY
    assert result.workflow is None
    assert result.state is InterviewState.AWAITING_CONFIRMATION
    assert await workflow_dal.count_workflows(session.id) == 0


async def test_malformed_arguments_become_apology(exchange, session, workflow_dal, fake_openai):
    fake_openai.queue_function_call("{not json")

    result = await exchange.send_turn(session.id, "Yes", [bot("Does that sound right?")])

    assert result.reply == prompts.APOLOGY_REPLY
    assert prompts.MODEL_ERROR_WARNING in result.warnings
    assert await workflow_dal.count_workflows(session.id) == 0


async def test_unknown_function_becomes_apology(exchange, session, fake_openai, complete_workflow_args):
    fake_openai.queue_function_call(complete_workflow_args, name="delete_everything")

    result = await exchange.send_turn(session.id, "Yes", [bot("Does that sound right?")])

    assert result.reply == prompts.APOLOGY_REPLY


async def test_model_error_becomes_apology_and_keeps_state(exchange, session, message_dal, fake_openai):
    fake_openai.queue_error(RuntimeError("upstream timeout"))
    prior = [bot(f"Thanks. {prompts.DISCOVERY_QUESTIONS[2][0]}")]

    result = await exchange.send_turn(session.id, "Data entry", prior)

    assert result.reply == prompts.APOLOGY_REPLY
    assert result.state is InterviewState.AWAITING_Q3
    assert result.warnings == [prompts.MODEL_ERROR_WARNING]
    rows = await message_dal.list_messages(session.id)
    assert [row.content for row in rows] == ["Data entry", prompts.APOLOGY_REPLY]


async def test_empty_model_reply_becomes_apology(exchange, session, fake_openai):
    fake_openai.queue_text("   ")

    result = await exchange.send_turn(session.id, "Hello", [bot(prompts.OPENING_MESSAGE)])

    assert result.reply == prompts.APOLOGY_REPLY


async def test_user_message_save_failure_still_replies(exchange, session, message_dal, fake_openai, monkeypatch):
    original = message_dal.create_message

    async def failing_create(session_id, role, content):
        if role == USER_ROLE:
            raise RuntimeError("disk full")
        return await original(session_id, role, content)

    monkeypatch.setattr(message_dal, "create_message", failing_create)
    fake_openai.queue_text("Who answers the phone?")

    result = await exchange.send_turn(session.id, "Customers phone us", [bot(prompts.OPENING_MESSAGE)])

    assert result.reply == "Who answers the phone?"
    assert result.warnings == [prompts.UNSAVED_WARNING]
    assert [m.text for m in result.transcript][-2:] == ["Customers phone us", "Who answers the phone?"]
    assert result.transcript[-2].id is None


async def test_repeated_save_failures_warn_once(exchange, session, message_dal, fake_openai, monkeypatch):
    async def failing_create(session_id, role, content):
        raise RuntimeError("database locked")

    monkeypatch.setattr(message_dal, "create_message", failing_create)
    fake_openai.queue_text("Next question")

    result = await exchange.send_turn(session.id, "Answer", [bot(prompts.OPENING_MESSAGE)])

    assert result.warnings == [prompts.UNSAVED_WARNING]


async def test_opening_save_failure_uses_unsaved_opening(exchange, session, message_dal, fake_openai, monkeypatch):
    async def failing_opening(session_id, role, content):
        raise RuntimeError("database locked")

    monkeypatch.setattr(message_dal, "create_message_if_empty", failing_opening)
    fake_openai.queue_text("Next question")

    result = await exchange.send_turn(session.id, "Answer", [])

    assert result.transcript[0].text == prompts.OPENING_MESSAGE
    assert result.transcript[0].id is None
    assert prompts.UNSAVED_WARNING in result.warnings


async def test_workflow_save_failure_is_reported(
    exchange, session, workflow_dal, fake_openai, complete_workflow_args, monkeypatch
):
    async def failing_insert(record):
        raise RuntimeError("constraint failed")

    monkeypatch.setattr(workflow_dal, "create_workflow", failing_insert)
    fake_openai.queue_function_call(complete_workflow_args)

    result = await exchange.send_turn(session.id, "Yes", [bot("Does that sound right?")])

    assert result.reply == prompts.SAVE_FAILED_REPLY
    assert result.warnings == [prompts.WORKFLOW_SAVE_WARNING]
    assert result.state is InterviewState.AWAITING_CONFIRMATION


async def test_done_token_moves_to_done(exchange, session, fake_openai):
    fake_openai.queue_text(prompts.END_REPLY)

    result = await exchange.send_turn(session.id, "DONE", [bot(prompts.NEXT_WORKFLOW_QUESTION)])

    assert result.state is InterviewState.DONE


@pytest.mark.parametrize("session_id,text", [("", "hello"), ("s1", "   ")])
async def test_rejects_empty_input(exchange, session_id, text):
    with pytest.raises(ValueError):
        await exchange.send_turn(session_id, text, [])


async def test_result_is_stale_when_session_switched(
    completion_client, message_dal, workflow_dal, context, session, fake_openai
):
    exchange = MessageExchange(completion_client, message_dal, workflow_dal, context=context)
    await context.set_active("another-session")
    fake_openai.queue_text("Next question")

    result = await exchange.send_turn(session.id, "Answer", [bot(prompts.OPENING_MESSAGE)])

    assert result.stale is True


async def test_active_session_sends_live_transcript(
    completion_client, message_dal, workflow_dal, context, session, fake_openai
):
    exchange = MessageExchange(completion_client, message_dal, workflow_dal, context=context)
    live = [bot(prompts.OPENING_MESSAGE), user("Customers phone us"), bot("Who answers the phone?")]
    await context.set_active(session.id, live)
    fake_openai.queue_text("What happens next?")

    result = await exchange.send_turn(session.id, "The office manager", [bot(prompts.OPENING_MESSAGE)])

    sent = [entry["content"] for entry in fake_openai.calls[0]["input"][2:]]
    assert sent == [m.text for m in live] + ["The office manager"]
    assert result.stale is False
    assert [m.text for m in context.transcript] == [m.text for m in result.transcript]


async def test_history_reload_failure_is_a_warning(exchange, session, message_dal, fake_openai, monkeypatch):
    await message_dal.create_message(session.id, "assistant", prompts.OPENING_MESSAGE)

    async def failing_list(session_id):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(message_dal, "list_messages", failing_list)
    fake_openai.queue_text("Who answers the phone?")

    result = await exchange.send_turn(session.id, "Customers phone us")

    assert result.reply == "Who answers the phone?"
    assert result.warnings == [prompts.LOAD_FAILED_WARNING]


async def test_forget_session_drops_turn_lock(exchange, session, fake_openai):
    assert exchange.forget_session(session.id) is False
    fake_openai.queue_text("Who answers the phone?")
    await exchange.send_turn(session.id, "Customers phone us")

    assert exchange.forget_session(session.id) is True
    assert exchange.forget_session(session.id) is False
