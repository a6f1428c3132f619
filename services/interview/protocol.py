"""Explicit interview state derived from the transcript.

The model drives the conversation; this module only reads what happened.
A valid `add_workflow` call means SAVED, the literal DONE token means
DONE, and otherwise the state follows whichever scripted question or
summary the latest reply asks. Ambiguous replies keep the current state.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Tuple

from models.session_models import InterviewState, TranscriptMessage
from services.interview.prompts import CAPTURED_PREFIX, DISCOVERY_QUESTIONS, END_REPLY

# Phrases that identify each scripted question, in question order.
QUESTION_MARKERS: Tuple[Tuple[str, ...], ...] = (
	("value first enter", "enter the business"),
	("fully delivered",),
	("most minutes",),
	("rework",),
	("delayed by one hour", "damage the outcome"),
	("gut feel",),
	("file type", "data format"),
	("paper/physical", "digital work and paper", "paper work"),
	("oldest", "most disliked"),
	("external parties", "wait on external"),
)

CONFIRMATION_MARKERS = ("does that sound right", "let me summarize", "let me summarise")
END_MARKERS = (END_REPLY.lower(), "we've captured those workflows")

_DONE_PATTERN = re.compile(r"^\s*done[\s.!]*$", re.IGNORECASE)


def is_done_token(text: Optional[str]) -> bool:
	"""Return True when the user typed the literal DONE escape hatch."""
	return bool(text) and bool(_DONE_PATTERN.match(text))


def classify_reply(reply: str) -> Optional[InterviewState]:
	"""Return the state a reply moves the interview into, if recognisable."""
	lowered = (reply or "").lower()
	if not lowered:
		return None
	if lowered.startswith(CAPTURED_PREFIX.lower()):
		return InterviewState.SAVED
	if any(marker in lowered for marker in END_MARKERS):
		return InterviewState.DONE
	if any(marker in lowered for marker in CONFIRMATION_MARKERS):
		return InterviewState.AWAITING_CONFIRMATION

	# The question being asked normally comes last in the reply.
	best: Optional[Tuple[int, int]] = None
	for number, markers in enumerate(QUESTION_MARKERS, start=1):
		for marker in markers:
			position = lowered.rfind(marker)
			if position >= 0 and (best is None or position > best[0]):
				best = (position, number)
	if best is None:
		return None
	return InterviewState.for_question(best[1])


def next_state(
	current: InterviewState,
	user_text: Optional[str],
	reply: Optional[str],
	workflow_saved: bool = False,
) -> InterviewState:
	"""Return the authoritative state after one exchange."""
	if workflow_saved:
		return InterviewState.SAVED
	if is_done_token(user_text):
		return InterviewState.DONE
	return classify_reply(reply or "") or current


def derive_state(transcript: Iterable[TranscriptMessage]) -> InterviewState:
	"""Replay a transcript and return the current interview state."""
	state = InterviewState.AWAITING_Q1
	last_user_text: Optional[str] = None
	for message in transcript:
		if not message.is_bot:
			last_user_text = message.text
			continue
		state = next_state(state, last_user_text, message.text)
		last_user_text = None
	if last_user_text is not None and is_done_token(last_user_text):
		state = InterviewState.DONE
	return state


def describe_state(state: InterviewState) -> str:
	"""Return a short progress note passed to the model as context."""
	if state is InterviewState.AWAITING_CONFIRMATION:
		return "A workflow summary was presented and is awaiting the user's confirmation."
	if state is InterviewState.SAVED:
		return "The last workflow was saved. Ask whether to document another workflow or finish."
	if state is InterviewState.DONE:
		return "The user said DONE. Close the interview unless they start a new workflow."
	number = int(state.name.rsplit("Q", 1)[1])
	question, _ = DISCOVERY_QUESTIONS[number - 1]
	return f"Awaiting the answer to discovery question {number} of {len(DISCOVERY_QUESTIONS)}: {question}"
