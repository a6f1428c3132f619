import logging
from typing import Any, Dict

from fastapi import HTTPException, Request

from dal.workflow_dal import AISolutionDAL, WorkflowDAL
from models.workflow_record import WorkflowRecord
from services.openai.ai_solutions import AISolutionGenerator
from services.openai.completion_client import CompletionError
from services.workflow_diagram import WorkflowDiagramBuilder, mermaid_live_link

LOGGER = logging.getLogger(__name__)


async def _require_workflow(request: Request, workflow_id: str) -> WorkflowRecord:
    workflows: WorkflowDAL = request.app.state.workflow_dal
    workflow = await workflows.get_workflow(workflow_id)
    if workflow is None:
        raise HTTPException(status_code=404, detail=f"Workflow {workflow_id} not found")
    return workflow


async def get_diagram(request: Request, workflow_id: str) -> Dict[str, Any]:
    """Render a stored workflow as Mermaid text plus a Mermaid Live link."""
    workflow = await _require_workflow(request, workflow_id)
    code = WorkflowDiagramBuilder().build(workflow)
    return {"workflow_id": workflow_id, "mermaid_code": code, "live_link": mermaid_live_link(code)}


async def generate_solutions(request: Request, workflow_id: str) -> Dict[str, Any]:
    """Generate, store and return automation suggestions for a workflow.

    Raises:
        HTTPException(404) if the workflow does not exist.
        HTTPException(502) if the model call fails.
    """
    generator: AISolutionGenerator = request.app.state.solution_generator
    try:
        solutions = await generator.generate(workflow_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except CompletionError as exc:
        LOGGER.error("AI solution generation failed for workflow %s: %s", workflow_id, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return {"workflow_id": workflow_id, "solutions": [s.as_dict() for s in solutions]}


async def list_solutions(request: Request, workflow_id: str) -> Dict[str, Any]:
    await _require_workflow(request, workflow_id)
    solution_dal: AISolutionDAL = request.app.state.solution_dal
    solutions = await solution_dal.list_solutions(workflow_id)
    return {"workflow_id": workflow_id, "solutions": [s.as_dict() for s in solutions]}
