"""SerpAPI web search used to ground automation suggestions."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import httpx

LOGGER = logging.getLogger(__name__)

SERP_API_URL = "https://serpapi.com/search.json"


class WebSearchClient:
    """Query Google through SerpAPI and return `{title, url}` results."""

    def __init__(self, api_key: Optional[str], http_client: Optional[httpx.AsyncClient] = None, timeout: float = 15.0) -> None:
        self.api_key = api_key
        self.http_client = http_client
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def search(self, query: str, num: int = 6) -> List[Dict[str, str]]:
        """Return organic results for `query`.

        Raises:
            RuntimeError: If no API key is configured or the request fails.
        """
        if not self.api_key:
            raise RuntimeError("SERP_API_KEY is required for web search")

        params = {"engine": "google", "q": query, "api_key": self.api_key, "num": num}
        try:
            if self.http_client is not None:
                response = await self.http_client.get(SERP_API_URL, params=params, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(SERP_API_URL, params=params)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise RuntimeError(f"Web search failed: {exc}") from exc

        organic = payload.get("organic_results")
        if not isinstance(organic, list):
            LOGGER.warning("No organic results in SerpAPI response for %r", query)
            return []
        return [
            {"title": item.get("title") or "Untitled", "url": item.get("link") or "#"}
            for item in organic
            if isinstance(item, dict)
        ]
