"""Schema and validation for the single `add_workflow` function tool."""

from __future__ import annotations

from typing import Any, Dict, List

from models.workflow_record import WorkflowRecord

FUNCTION_NAME = "add_workflow"

REQUIRED_TEXT_FIELDS = ("title", "start_event", "end_event", "pain_point")
REQUIRED_LIST_FIELDS = ("people", "systems")

FUNCTION_DEFINITION: Dict[str, Any] = {
	"type": "function",
	"name": FUNCTION_NAME,
	"description": "Record one completed, user-confirmed workflow.",
	"parameters": {
		"type": "object",
		"properties": {
			"title": {"type": "string", "description": "Short label for the workflow"},
			"start_event": {"type": "string", "description": "The exact trigger that starts the workflow"},
			"end_event": {"type": "string", "description": "What marks the workflow as finished"},
			"people": {
				"type": "array",
				"items": {"type": "string"},
				"description": "Distinct roles or job titles involved; empty if confirmed none",
			},
			"systems": {
				"type": "array",
				"items": {"type": "string"},
				"description": "Software or artifacts involved; empty if confirmed none",
			},
			"pain_point": {"type": "string", "description": "Single sentence describing the main friction"},
		},
		"required": ["title", "start_event", "end_event", "people", "systems", "pain_point"],
		"additionalProperties": False,
	},
	"strict": False,
}


def validate_workflow_arguments(args: Dict[str, Any]) -> List[str]:
	"""Return the names of fields that break the workflow record contract.

	Text fields must be non-empty strings. People and systems must be
	lists of strings; an empty list is a confirmed "none", a missing
	value is not.
	"""
	problems: List[str] = []
	for name in REQUIRED_TEXT_FIELDS:
		value = args.get(name)
		if not isinstance(value, str) or not value.strip():
			problems.append(name)
	for name in REQUIRED_LIST_FIELDS:
		value = args.get(name)
		if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
			problems.append(name)
	return problems


def build_workflow_record(session_id: str, args: Dict[str, Any]) -> WorkflowRecord:
	"""Build an unsaved WorkflowRecord from validated arguments."""
	return WorkflowRecord(
		id=None,
		session_id=session_id,
		title=args["title"].strip(),
		start_event=args["start_event"].strip(),
		end_event=args["end_event"].strip(),
		people=[item.strip() for item in args["people"] if item.strip()],
		systems=[item.strip() for item in args["systems"] if item.strip()],
		pain_point=args["pain_point"].strip(),
	)
