"""Shared test fixtures for WorkflowSleuth."""

import json
from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

from dal.client_state_dal import ClientStateDAL
from dal.message_dal import MessageDAL
from dal.session_dal import SessionDAL
from dal.workflow_dal import AISolutionDAL, WorkflowDAL
from services.interview.session_context import SessionContext
from services.interview.session_manager import SessionManager
from services.openai.completion_client import CompletionClient
from utils.config import Settings
from utils.database_init import AsyncDatabaseInitializer


class FakeResponses:
    """Stand-in for `AsyncOpenAI().responses` that replays scripted outputs."""

    def __init__(self):
        self.calls = []
        self.script = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if not self.script:
            raise RuntimeError("No scripted response left")
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeOpenAI:
    """Minimal async OpenAI client exposing `responses.create`."""

    def __init__(self):
        self.responses = FakeResponses()

    @property
    def calls(self):
        return self.responses.calls

    def queue_text(self, text):
        self.responses.script.append(
            SimpleNamespace(
                output=[
                    SimpleNamespace(
                        type="message",
                        content=[SimpleNamespace(type="output_text", text=text)],
                    )
                ],
                output_text=text,
                usage=SimpleNamespace(input_tokens=10, output_tokens=5),
            )
        )

    def queue_function_call(self, arguments, name="add_workflow"):
        payload = arguments if isinstance(arguments, str) else json.dumps(arguments)
        self.responses.script.append(
            SimpleNamespace(
                output=[SimpleNamespace(type="function_call", name=name, arguments=payload)],
                output_text="",
                usage=None,
            )
        )

    def queue_error(self, exc):
        self.responses.script.append(exc)


@pytest.fixture
def complete_workflow_args():
    return {
        "title": "Invoice Approval",
        "start_event": "Technician submits a completed job sheet",
        "end_event": "Customer invoice is sent",
        "people": ["Scheduler", "Technician"],
        "systems": ["QuickBooks"],
        "pain_point": "Invoices wait 3 days for approval",
    }


@pytest.fixture
async def db(tmp_path):
    initializer = AsyncDatabaseInitializer(tmp_path / "db")
    await initializer.ensure_database()
    return initializer


@pytest.fixture
def session_dal(db):
    return SessionDAL(db)


@pytest.fixture
def message_dal(db):
    return MessageDAL(db)


@pytest.fixture
def workflow_dal(db):
    return WorkflowDAL(db)


@pytest.fixture
def solution_dal(db):
    return AISolutionDAL(db)


@pytest.fixture
def state_dal(db):
    return ClientStateDAL(db)


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def completion_client(fake_openai):
    return CompletionClient(fake_openai, model="gpt-4.1", temperature=0.2)


@pytest.fixture
def context(state_dal):
    return SessionContext(state_dal)


@pytest.fixture
def manager(context, session_dal, message_dal):
    return SessionManager(context, session_dal, message_dal)


@pytest.fixture
def app(db, fake_openai):
    from main import attach_services, create_app

    application = create_app()
    attach_services(application, db, fake_openai, Settings())
    return application


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
