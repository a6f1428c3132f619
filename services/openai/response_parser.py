"""Helpers to parse Responses API outputs."""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class FunctionCall:
    """A structured function invocation chosen by the model."""

    name: str
    arguments_json: str

    def arguments(self) -> Dict[str, Any]:
        """Decode the argument payload.

        Raises:
            ValueError: If the payload is not a JSON object.
        """
        try:
            args = json.loads(self.arguments_json or "{}")
        except json.JSONDecodeError as exc:
            raise ValueError(f"Malformed arguments for '{self.name}': {exc}") from exc
        if not isinstance(args, dict):
            raise ValueError(f"Arguments for '{self.name}' must be a JSON object.")
        return args


@dataclass
class Completion:
    """Either free text or a function call returned by the model."""

    content: Optional[str] = None
    function_call: Optional[FunctionCall] = None


def _field(item: Any, name: str, default: Any = None) -> Any:
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def extract_function_call(response: Any) -> Optional[FunctionCall]:
    """Return the first function_call output item, if any."""
    for item in _field(response, "output", None) or []:
        if _field(item, "type") != "function_call":
            continue
        return FunctionCall(
            name=_field(item, "name", "") or "",
            arguments_json=_field(item, "arguments", "{}") or "{}",
        )
    return None


def extract_text(response: Any) -> str:
    """Concatenate every output_text entry from the response."""
    parts = []
    for item in _field(response, "output", None) or []:
        if _field(item, "type") != "message":
            continue
        for content in _field(item, "content", None) or []:
            if _field(content, "type") == "output_text":
                parts.append(_field(content, "text", "") or "")
    if parts:
        return "".join(parts)
    return _field(response, "output_text", "") or ""


def parse_completion(response: Any) -> Completion:
    """Convert a Responses API result into a Completion."""
    function_call = extract_function_call(response)
    if function_call is not None:
        return Completion(content=extract_text(response) or None, function_call=function_call)
    return Completion(content=extract_text(response))


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage information from the response, if present."""
    usage = _field(response, "usage", None)
    return {
        "input_tokens": _field(usage, "input_tokens", None) if usage else None,
        "output_tokens": _field(usage, "output_tokens", None) if usage else None,
    }
