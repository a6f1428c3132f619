"""Print every interview session stored in the project's SQLite database.

For each session this prints its title and owner, the transcript in order,
and the workflows captured from it. It reuses the same `DATABASE_DIR`
behavior as the application via `utils.database_init.AsyncDatabaseInitializer`.

Run: set the `DATABASE_DIR` environment variable (or point it to the
      repository `database` folder) and run `python print_db.py`.
"""
import asyncio

from dotenv import load_dotenv

from dal.message_dal import MessageDAL
from dal.session_dal import SessionDAL
from dal.workflow_dal import WorkflowDAL
from models.session_models import Session
from utils.database_init import AsyncDatabaseInitializer


async def _print_session(session: Session, messages: MessageDAL, workflows: WorkflowDAL) -> None:
    """Print one session with its transcript and workflows.

    Args:
        session: Session to print.
        messages: DAL used to load the transcript.
        workflows: DAL used to load the captured workflows.
    """
    print(f"Session {session.id} ({session.title or 'untitled'})")
    print(f"  company={session.company_name!r} facilitator={session.facilitator!r} created_at={session.created_at}")

    rows = await messages.list_messages(session.id)
    for row in rows:
        text = " ".join(row.content.split())
        print(f"  [{row.role}] {text}")

    for record in await workflows.list_workflows(session.id):
        print(f"  Workflow {record.id}: {record.title}")
        print(f"    start={record.start_event!r} end={record.end_event!r}")
        print(f"    people={', '.join(record.people) or '-'} systems={', '.join(record.systems) or '-'}")
        print(f"    pain_point={record.pain_point!r}")
    print()


async def main() -> None:
    """Ensure DB exists and print all sessions, newest first."""
    initializer = AsyncDatabaseInitializer()
    sessions = SessionDAL(initializer)
    messages = MessageDAL(initializer)
    workflows = WorkflowDAL(initializer)
    for session in await sessions.list_sessions():
        await _print_session(session, messages, workflows)


if __name__ == "__main__":
    load_dotenv()
    asyncio.run(main())
