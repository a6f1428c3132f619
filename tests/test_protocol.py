"""Tests for interview state tracking."""

import pytest

from models.session_models import InterviewState, TranscriptMessage
from services.interview import prompts
from services.interview.protocol import (
    classify_reply,
    derive_state,
    describe_state,
    is_done_token,
    next_state,
)


def bot(text):
    return TranscriptMessage(text=text, is_bot=True)


def user(text):
    return TranscriptMessage(text=text, is_bot=False)


@pytest.mark.parametrize("text", ["DONE", "done", " Done. ", "DONE!"])
def test_done_token(text):
    assert is_done_token(text)


@pytest.mark.parametrize("text", ["", None, "not done yet", "I'm done with that step"])
def test_not_done_token(text):
    assert not is_done_token(text)


def test_opening_message_awaits_first_question():
    assert classify_reply(prompts.OPENING_MESSAGE) is InterviewState.AWAITING_Q1


def test_each_scripted_question_is_recognised():
    for number, (question, _) in enumerate(prompts.DISCOVERY_QUESTIONS, start=1):
        assert classify_reply(f"Thanks. {question}") is InterviewState.for_question(number)


def test_summary_awaits_confirmation():
    reply = f"{prompts.SUMMARY_LEAD_IN} Title: Intake. {prompts.CONFIRMATION_QUESTION}"
    assert classify_reply(reply) is InterviewState.AWAITING_CONFIRMATION


def test_confirmation_reply_means_saved():
    reply = prompts.confirmation_reply("Intake", 1, 10)
    assert classify_reply(reply) is InterviewState.SAVED


def test_end_reply_means_done():
    assert classify_reply(prompts.END_REPLY) is InterviewState.DONE


def test_unrecognised_reply_keeps_state():
    state = next_state(InterviewState.AWAITING_Q4, "It varies", "Could you give me an example?")
    assert state is InterviewState.AWAITING_Q4


def test_done_from_user_wins():
    assert next_state(InterviewState.SAVED, "DONE", "Anything else?") is InterviewState.DONE


def test_workflow_saved_wins():
    assert next_state(InterviewState.AWAITING_CONFIRMATION, "yes", "", workflow_saved=True) is InterviewState.SAVED


def test_derive_state_from_transcript():
    transcript = [
        bot(prompts.OPENING_MESSAGE),
        user("Customers call us"),
        bot(f"Got it. {prompts.DISCOVERY_QUESTIONS[1][0]}"),
        user("Scheduler books, technician visits, we invoice"),
        bot(f"Thanks. {prompts.DISCOVERY_QUESTIONS[2][0]}"),
    ]
    assert derive_state(transcript) is InterviewState.AWAITING_Q3
    assert derive_state([]) is InterviewState.AWAITING_Q1


def test_trailing_done_without_reply():
    transcript = [bot(prompts.confirmation_reply("Intake", 1, 10)), user("DONE")]
    assert derive_state(transcript) is InterviewState.DONE


def test_describe_state_mentions_question():
    assert "question 3 of 10" in describe_state(InterviewState.AWAITING_Q3)
    assert "confirmation" in describe_state(InterviewState.AWAITING_CONFIRMATION)


def test_confirmation_framing_switches_at_threshold():
    assert prompts.confirmation_reply("Intake", 9, 10).endswith(prompts.CONTINUE_SUFFIX)
    assert prompts.confirmation_reply("Intake", 10, 10).endswith(prompts.MANY_WORKFLOWS_SUFFIX)
    assert prompts.confirmation_reply("Intake", None, 10).startswith('I\'ve captured the "Intake" workflow.')
