"""Completion collaborator built on the OpenAI Responses API."""

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from openai import AsyncOpenAI

from services.openai.response_parser import Completion, extract_usage, parse_completion

LOGGER = logging.getLogger(__name__)


class CompletionError(RuntimeError):
    """Raised when the model call fails or returns nothing usable."""


class CompletionClient:
    """Send a role/content transcript to the model, optionally with function tools."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "gpt-4.1",
        temperature: Optional[float] = 0.2,
    ) -> None:
        """
        Args:
            client: Shared async OpenAI client.
            model: Default model for `complete`.
            temperature: Default sampling temperature; None leaves the API default.
        """
        if client is None:
            raise ValueError("AsyncOpenAI client is required.")
        self.client = client
        self.model = model
        self.temperature = temperature

    @staticmethod
    def _build_input(transcript: Sequence[Dict[str, str]]) -> List[Dict[str, Any]]:
        return [
            {"type": "message", "role": entry["role"], "content": entry["content"]}
            for entry in transcript
        ]

    async def complete(
        self,
        transcript: Sequence[Dict[str, str]],
        functions: Optional[List[Dict[str, Any]]] = None,
        *,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
    ) -> Completion:
        """Return the model's reply for an ordered transcript.

        Args:
            transcript: Ordered `{role, content}` entries (system/user/assistant).
            functions: Function tool definitions; the model picks one automatically.
            model: Override of the default model.
            temperature: Override of the default temperature.
            max_output_tokens: Optional output token limit.

        Raises:
            CompletionError: On transport errors or an empty response.
        """
        request: Dict[str, Any] = {
            "model": model or self.model,
            "input": self._build_input(transcript),
        }
        resolved_temperature = temperature if temperature is not None else self.temperature
        if resolved_temperature is not None:
            request["temperature"] = resolved_temperature
        if max_output_tokens is not None:
            request["max_output_tokens"] = max_output_tokens
        if functions:
            request["tools"] = functions
            request["tool_choice"] = "auto"

        start = time.time()
        try:
            response = await self.client.responses.create(**request)
        except Exception as exc:
            LOGGER.error("OpenAI Responses API error: %s", exc)
            raise CompletionError(f"Completion request failed: {exc}") from exc

        completion = parse_completion(response)
        LOGGER.info(
            "Completion received in %.3fs (function_call=%s, usage=%s)",
            time.time() - start,
            completion.function_call.name if completion.function_call else None,
            extract_usage(response),
        )
        if completion.function_call is None and not (completion.content or "").strip():
            raise CompletionError("Model returned neither text nor a function call.")
        return completion

    async def ping(self, model: str = "gpt-4o-mini") -> str:
        """Send a trivial prompt to verify the API key and connectivity."""
        completion = await self.complete(
            [
                {"role": "system", "content": "You are a helpful assistant."},
                {"role": "user", "content": "Say hello in a creative way."},
            ],
            model=model,
            max_output_tokens=50,
        )
        return completion.content or ""
