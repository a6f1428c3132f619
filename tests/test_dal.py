"""Tests for the SQLite data access layer."""

import pytest

from models.session_models import ASSISTANT_ROLE, USER_ROLE, TranscriptMessage
from models.workflow_record import AISolution, WorkflowRecord


async def test_create_and_get_session(session_dal):
    session = await session_dal.create_session("Acme Plumbing")
    assert session.facilitator == "WorkflowSleuth"
    assert session.title is None
    assert session.finished is False

    loaded = await session_dal.get_session(session.id)
    assert loaded == session


async def test_get_unknown_session_returns_none(session_dal):
    assert await session_dal.get_session("missing") is None


async def test_list_sessions_newest_first(session_dal):
    first = await session_dal.create_session("Acme")
    second = await session_dal.create_session("Acme")
    ids = [s.id for s in await session_dal.list_sessions()]
    assert ids == [second.id, first.id]


async def test_update_title(session_dal):
    session = await session_dal.create_session("Acme")
    assert await session_dal.update_title(session.id, "Invoice Approval") is True
    assert (await session_dal.get_session(session.id)).title == "Invoice Approval"
    assert await session_dal.update_title("missing", "Nope") is False


async def test_messages_round_trip_in_order(session_dal, message_dal):
    session = await session_dal.create_session("Acme")
    await message_dal.create_message(session.id, ASSISTANT_ROLE, "Opening")
    await message_dal.create_message(session.id, USER_ROLE, "We take phone orders")
    await message_dal.create_message(session.id, ASSISTANT_ROLE, "Who answers the phone?")

    rows = await message_dal.list_messages(session.id)
    transcript = [TranscriptMessage.from_row(row) for row in rows]
    assert [m.text for m in transcript] == ["Opening", "We take phone orders", "Who answers the phone?"]
    assert [m.is_bot for m in transcript] == [True, False, True]
    assert await message_dal.count_messages(session.id) == 3


async def test_create_message_rejects_unknown_role(session_dal, message_dal):
    session = await session_dal.create_session("Acme")
    with pytest.raises(ValueError):
        await message_dal.create_message(session.id, "system", "nope")


async def test_create_message_if_empty_only_inserts_once(session_dal, message_dal):
    session = await session_dal.create_session("Acme")
    first = await message_dal.create_message_if_empty(session.id, ASSISTANT_ROLE, "Opening")
    second = await message_dal.create_message_if_empty(session.id, ASSISTANT_ROLE, "Opening")
    assert first is not None
    assert second is None
    assert await message_dal.count_messages(session.id) == 1


async def test_sessions_with_messages_and_empty_sessions(session_dal, message_dal):
    chatted = await session_dal.create_session("Acme")
    empty = await session_dal.create_session("Acme")
    await message_dal.create_message(chatted.id, USER_ROLE, "Hello")

    with_messages = await session_dal.list_sessions_with_messages()
    assert [s.id for s in with_messages] == [chatted.id]

    empties = await session_dal.list_empty_sessions("9999-01-01T00:00:00+00:00")
    assert [s.id for s in empties] == [empty.id]
    assert await session_dal.list_empty_sessions("2000-01-01T00:00:00+00:00") == []


async def test_workflow_insert_and_count(session_dal, workflow_dal):
    session = await session_dal.create_session("Acme")
    record = WorkflowRecord(
        id=None,
        session_id=session.id,
        title="Client Onboarding",
        start_event="Contract signed",
        end_event="First job scheduled",
        people=[],
        systems=["Paper form"],
        pain_point="Forms are retyped twice",
    )
    stored = await workflow_dal.create_workflow(record)
    assert stored.id
    assert stored.created_at

    assert await workflow_dal.count_workflows(session.id) == 1
    loaded = await workflow_dal.get_workflow(stored.id)
    assert loaded.people == []
    assert loaded.systems == ["Paper form"]
    assert [w.id for w in await workflow_dal.list_workflows(session.id)] == [stored.id]


async def test_delete_session_cascades(session_dal, message_dal, workflow_dal, solution_dal):
    session = await session_dal.create_session("Acme")
    await message_dal.create_message(session.id, USER_ROLE, "Hello")
    workflow = await workflow_dal.create_workflow(
        WorkflowRecord(
            id=None,
            session_id=session.id,
            title="Dispatch",
            start_event="Call received",
            end_event="Technician on site",
            pain_point="Manual routing",
        )
    )
    await solution_dal.create_solutions(
        workflow.id,
        [AISolution(id=None, workflow_id=workflow.id, step_label="Routing", suggestion="Auto-route", ai_tool="Zapier")],
    )

    assert await session_dal.delete_session(session.id) is True
    assert await message_dal.count_messages(session.id) == 0
    assert await workflow_dal.get_workflow(workflow.id) is None
    assert await solution_dal.list_solutions(workflow.id) == []
    assert await session_dal.delete_session(session.id) is False


async def test_solutions_ordered_by_roi(session_dal, workflow_dal, solution_dal):
    session = await session_dal.create_session("Acme")
    workflow = await workflow_dal.create_workflow(
        WorkflowRecord(
            id=None,
            session_id=session.id,
            title="Dispatch",
            start_event="Call received",
            end_event="Technician on site",
            pain_point="Manual routing",
        )
    )
    await solution_dal.create_solutions(
        workflow.id,
        [
            AISolution(id=None, workflow_id=workflow.id, step_label="A", suggestion="a", ai_tool="X", roi_score=2),
            AISolution(
                id=None,
                workflow_id=workflow.id,
                step_label="B",
                suggestion="b",
                ai_tool="Y",
                roi_score=5,
                sources=[{"title": "Doc", "url": "https://example.com"}],
            ),
        ],
    )
    solutions = await solution_dal.list_solutions(workflow.id)
    assert [s.step_label for s in solutions] == ["B", "A"]
    assert solutions[0].sources == [{"title": "Doc", "url": "https://example.com"}]
    assert solutions[1].sources == []


async def test_client_state_upsert_and_delete(state_dal):
    assert await state_dal.get_value("key") is None
    await state_dal.set_value("key", "one")
    await state_dal.set_value("key", "two")
    assert await state_dal.get_value("key") == "two"
    await state_dal.delete_value("key")
    assert await state_dal.get_value("key") is None


async def test_database_survives_reinitialization(tmp_path):
    from utils.database_init import AsyncDatabaseInitializer
    from dal.session_dal import SessionDAL

    first = AsyncDatabaseInitializer(tmp_path)
    session = await SessionDAL(first).create_session("Acme")

    reopened = AsyncDatabaseInitializer(tmp_path)
    assert await SessionDAL(reopened).get_session(session.id) is not None

    reset = AsyncDatabaseInitializer(tmp_path, reset=True)
    assert await SessionDAL(reset).get_session(session.id) is None
