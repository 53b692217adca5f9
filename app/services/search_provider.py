import logging

import httpx
from pydantic import ValidationError

from app.config import settings
from app.schemas.web_search import SearchResult

logger = logging.getLogger(__name__)

MIN_RESULTS = 3
MAX_RESULTS = 20


class SearchProviderError(Exception):
    """The search provider could not answer (auth, network, quota, bad payload)."""


class ExaSearchProvider:
    """Semantic web search via the Exa REST API."""

    def __init__(self, api_key: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = settings.exa_api_key if api_key is None else api_key
        self.base_url = settings.exa_base_url.rstrip("/")
        self.transport = transport

    async def search(
        self,
        query: str,
        num_results: int,
        include_domains: list[str] | None = None,
    ) -> list[SearchResult]:
        if not self.api_key:
            raise SearchProviderError("Exa API key is not configured")

        payload = {
            "query": query,
            "numResults": max(MIN_RESULTS, min(num_results, MAX_RESULTS)),
            "contents": {"text": True},
        }
        if include_domains:
            payload["includeDomains"] = include_domains

        headers = {"x-api-key": self.api_key, "Content-Type": "application/json"}

        try:
            async with httpx.AsyncClient(
                timeout=settings.search_timeout, transport=self.transport
            ) as client:
                resp = await client.post(f"{self.base_url}/search", json=payload, headers=headers)
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SearchProviderError(f"Exa search failed: {exc}") from exc

        raw_results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(raw_results, list):
            raise SearchProviderError("Exa response has no results list")

        results = []
        for item in raw_results:
            if not isinstance(item, dict) or not item.get("url"):
                continue
            try:
                results.append(SearchResult(
                    url=item["url"],
                    title=item.get("title") or "",
                    text=item.get("text"),
                    published_date=item.get("publishedDate"),
                ))
            except ValidationError:
                logger.warning("Skipping malformed Exa result: %r", item.get("url"))

        logger.info("Exa returned %d results for: %s", len(results), query)
        return results
