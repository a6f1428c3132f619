"""FastAPI routes for captured workflows: diagrams and AI suggestions."""

from fastapi import APIRouter, HTTPException, Request

from controllers.workflow_controller import generate_solutions, get_diagram, list_solutions

router = APIRouter(prefix="/workflows", tags=["workflows"])


@router.get("/{workflow_id}/diagram")
async def get_diagram_route(request: Request, workflow_id: str):
    try:
        return await get_diagram(request, workflow_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{workflow_id}/solutions")
async def generate_solutions_route(request: Request, workflow_id: str):
    try:
        return await generate_solutions(request, workflow_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{workflow_id}/solutions")
async def list_solutions_route(request: Request, workflow_id: str):
    try:
        return await list_solutions(request, workflow_id)
    except HTTPException:
        raise
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc))
