import inspect
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request, HTTPException
from openai import AsyncOpenAI

from dal.client_state_dal import ClientStateDAL
from dal.message_dal import MessageDAL
from dal.session_dal import SessionDAL
from dal.workflow_dal import AISolutionDAL, WorkflowDAL
from routes.chat_route import router as chat_router
from routes.realtime_ws import router as events_router
from routes.session_route import router as session_router
from routes.workflow_route import router as workflow_router
from services.interview.exchange import MessageExchange
from services.interview.session_context import SessionContext
from services.interview.session_manager import SessionManager
from services.interview.title_deriver import SessionTitleDeriver
from services.interview.title_events import TitleUpdateBroadcaster
from services.openai.ai_solutions import AISolutionGenerator
from services.openai.completion_client import CompletionClient, CompletionError
from services.web_search import WebSearchClient
from utils.config import Settings, database_reset_requested
from utils.database_cleaner import SessionCleaner
from utils.database_init import AsyncDatabaseInitializer

load_dotenv()  # Load environment variables from .env file if present

LOGGER = logging.getLogger(__name__)


def attach_services(
    app: FastAPI,
    db_initializer: AsyncDatabaseInitializer,
    openai_client: AsyncOpenAI,
    settings: Optional[Settings] = None,
) -> None:
    """
    Build the interview services on top of a database and an OpenAI client
    and attach them to `app.state`.
    """
    settings = settings or Settings.from_env()
    app.state.settings = settings
    app.state.db_initializer = db_initializer
    app.state.openai_client = openai_client

    app.state.session_dal = SessionDAL(db_initializer)
    app.state.message_dal = MessageDAL(db_initializer)
    app.state.workflow_dal = WorkflowDAL(db_initializer)
    app.state.solution_dal = AISolutionDAL(db_initializer)

    completion_client = CompletionClient(
        openai_client,
        model=settings.interview_model,
        temperature=settings.interview_temperature,
    )
    app.state.completion_client = completion_client

    context = SessionContext(ClientStateDAL(db_initializer))
    app.state.session_context = context
    app.state.session_manager = SessionManager(context, app.state.session_dal, app.state.message_dal)
    app.state.message_exchange = MessageExchange(
        completion_client,
        app.state.message_dal,
        app.state.workflow_dal,
        context=context,
        workflow_count_threshold=settings.workflow_count_threshold,
    )

    app.state.title_broadcaster = TitleUpdateBroadcaster()
    app.state.title_deriver = SessionTitleDeriver(
        completion_client,
        app.state.session_dal,
        broadcaster=app.state.title_broadcaster,
        model=settings.title_model,
    )
    app.state.session_cleaner = SessionCleaner(app.state.session_dal, context)

    app.state.web_search = WebSearchClient(settings.serp_api_key)
    app.state.solution_generator = AISolutionGenerator(
        completion_client,
        app.state.workflow_dal,
        app.state.solution_dal,
        search_client=app.state.web_search,
        model=settings.solutions_model,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the SQLite record store (at DATABASE_DIR/app.db, wiped only when DATABASE_RESET is set)
      - the OpenAI async client
      - the interview services built on both
    and attach them to `app.state`.
    """
    settings = Settings.from_env()

    db_initializer = AsyncDatabaseInitializer(reset=database_reset_requested())
    await db_initializer.ensure_database()

    # Initialize OpenAI async client
    openai_api_key = os.getenv("OPENAI_API_KEY")
    if not openai_api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is not set")

    try:
        openai_client = AsyncOpenAI()
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc

    attach_services(app, db_initializer, openai_client, settings)
    LOGGER.info("WorkflowSleuth ready (model=%s, database=%s)", settings.interview_model, db_initializer.db_path)

    try:
        yield
    finally:
        # Gracefully close the OpenAI client if it exposes a close/aclose method.
        client = getattr(app.state, "openai_client", None)
        if client is not None:
            aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
            if aclose is not None:
                try:
                    if inspect.iscoroutinefunction(aclose):
                        await aclose()
                    else:
                        result = aclose()
                        if inspect.isawaitable(result):
                            await result
                except Exception:
                    LOGGER.warning("Failed to close the OpenAI client", exc_info=True)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(title="WorkflowSleuth", lifespan=lifespan)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that verifies DB initializer and OpenAI client presence.
        """
        has_db = hasattr(request.app.state, "db_initializer")
        has_openai = (
            hasattr(request.app.state, "openai_client")
            and request.app.state.openai_client is not None
        )
        return {"ok": True, "db_initialized": has_db, "openai_available": has_openai}

    @app.post("/health/openai")
    async def openai_health(request: Request):
        """
        Send a trivial completion to confirm the API key and connectivity.
        """
        completion_client = getattr(request.app.state, "completion_client", None)
        if completion_client is None:
            raise HTTPException(status_code=500, detail="OpenAI client not initialized.")
        try:
            reply = await completion_client.ping()
        except CompletionError as exc:
            raise HTTPException(status_code=502, detail=str(exc))
        return {"ok": True, "reply": reply}

    # Register application routers
    app.include_router(session_router)
    app.include_router(chat_router)
    app.include_router(workflow_router)
    app.include_router(events_router)

    return app


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", Settings.log_level).upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app()
