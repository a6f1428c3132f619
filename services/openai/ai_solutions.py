"""Automation opportunity suggestions for a captured workflow.

Given a stored workflow, this module runs a couple of web searches for
relevant tools, asks the model for a JSON array of practical AI
interventions, and stores the well-formed ones as AI_SOLUTION rows.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from dal.workflow_dal import AISolutionDAL, WorkflowDAL
from models.workflow_record import AISolution, WorkflowRecord
from services.openai.completion_client import CompletionClient
from services.web_search import WebSearchClient

LOGGER = logging.getLogger(__name__)

COMPLEXITY_TIERS = ("Low", "Medium", "High")

SYSTEM_PROMPT = """You are "Workflow-AI Conductor".

OBJECTIVE
For the given workflow JSON, list practical AI interventions a mid-size business
could deploy within 90 days to remove bottlenecks, reduce cost, or boost speed.

CONSTRAINTS
* Output only deployable, reasonably priced tech (Zapier, UiPath, Vertex AI, etc.).
* If no AI uplift exists for a step, skip it.
* Final answer must be a **JSON array**; nothing else.

Each array item is an object:
{
  "step_label":  "<node or pain label>",
  "suggestion":  "<plain-English automation idea>",
  "ai_tool":     "<named SaaS / open-source>",
  "complexity":  "Low|Medium|High",
  "roi_score":   1-5,
  "sources":     [ { "title": "...", "url": "..." } ]
}"""

_FENCED_JSON = re.compile(r"```(?:json)?\s*\n(.*?)\n\s*```", re.DOTALL)


def parse_solutions_payload(content: str) -> List[Dict[str, Any]]:
    """Extract the suggestion objects from a model reply.

    Accepts a fenced JSON block, a bare JSON array, or an object with an
    `opportunities` list. Unparseable content yields an empty list.
    """
    text = (content or "").strip()
    candidates: List[str] = []
    fenced = _FENCED_JSON.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    candidates.append(text)
    start, end = text.find("["), text.rfind("]")
    if 0 <= start < end:
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate.strip())
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            parsed = parsed.get("opportunities", [])
        if isinstance(parsed, list):
            return [item for item in parsed if isinstance(item, dict)]
    LOGGER.warning("No JSON suggestions found in model reply")
    return []


def _normalize_sources(raw: Any) -> List[Dict[str, str]]:
    if not isinstance(raw, list):
        return []
    return [
        {"title": str(item.get("title") or "Untitled"), "url": str(item.get("url") or "#")}
        for item in raw
        if isinstance(item, dict)
    ]


def to_solution(workflow_id: str, item: Dict[str, Any]) -> Optional[AISolution]:
    """Return an AISolution for a well-formed item, or None if required text is missing."""
    step_label = str(item.get("step_label") or "").strip()
    suggestion = str(item.get("suggestion") or "").strip()
    ai_tool = str(item.get("ai_tool") or "").strip()
    if not (step_label and suggestion and ai_tool):
        return None

    complexity = str(item.get("complexity") or "").strip().capitalize()
    if complexity not in COMPLEXITY_TIERS:
        complexity = "Medium"
    try:
        roi_score = int(item.get("roi_score") or 3)
    except (TypeError, ValueError):
        roi_score = 3
    roi_score = min(max(roi_score, 1), 5)

    return AISolution(
        id=None,
        workflow_id=workflow_id,
        step_label=step_label,
        suggestion=suggestion,
        ai_tool=ai_tool,
        complexity=complexity,
        roi_score=roi_score,
        sources=_normalize_sources(item.get("sources")),
    )


class AISolutionGenerator:
    """Generate and store automation suggestions for one workflow."""

    def __init__(
        self,
        completion_client: CompletionClient,
        workflow_dal: WorkflowDAL,
        solution_dal: AISolutionDAL,
        search_client: Optional[WebSearchClient] = None,
        model: Optional[str] = None,
    ) -> None:
        self.completions = completion_client
        self.workflows = workflow_dal
        self.solutions = solution_dal
        self.search = search_client
        self.model = model

    async def generate(self, workflow_id: str) -> List[AISolution]:
        """Return the stored suggestions generated for `workflow_id`.

        Raises:
            LookupError: If the workflow does not exist.
            RuntimeError: If the model call fails.
        """
        workflow = await self.workflows.get_workflow(workflow_id)
        if workflow is None:
            raise LookupError(f"Workflow {workflow_id} not found")

        LOGGER.info("Generating AI solutions for workflow %s", workflow_id)
        search_results = await self._research(workflow)
        details = {
            "title": workflow.title,
            "start_event": workflow.start_event,
            "end_event": workflow.end_event,
            "people": workflow.people,
            "systems": workflow.systems,
            "pain_point": workflow.pain_point,
        }
        transcript = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": "Analyze this workflow and provide specific AI automation opportunities:\n"
                + json.dumps(details, indent=2),
            },
        ]
        if search_results:
            transcript.append(
                {
                    "role": "user",
                    "content": "I searched the web for solutions. Here are the search results:\n"
                    + json.dumps(search_results, indent=2),
                }
            )

        completion = await self.completions.complete(transcript, model=self.model, temperature=0.5)
        items = parse_solutions_payload(completion.content or "")
        solutions = [s for s in (to_solution(workflow_id, item) for item in items) if s is not None]
        if not solutions:
            LOGGER.warning("Model returned no usable solutions for workflow %s", workflow_id)
            return []

        stored = await self.solutions.create_solutions(workflow_id, solutions)
        LOGGER.info("Saved %d AI solutions for workflow %s", len(stored), workflow_id)
        return stored

    async def _research(self, workflow: WorkflowRecord) -> List[Dict[str, str]]:
        """Run the background searches; failures only reduce grounding."""
        if self.search is None or not self.search.enabled:
            LOGGER.warning("Web search disabled; generating solutions without search results")
            return []

        queries = [f"AI automation tools for {workflow.title} process in business"]
        if workflow.systems:
            queries.append(f"Best AI tools to streamline {', '.join(workflow.systems)} integration")

        results: Dict[str, Dict[str, str]] = {}
        for query in queries:
            try:
                for item in await self.search.search(query):
                    results.setdefault(item["url"], item)
            except RuntimeError as exc:
                LOGGER.error("Search error for %r: %s", query, exc)
        return list(results.values())
