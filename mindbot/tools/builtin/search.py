"""Web search tool — Google Custom Search, with a placeholder result when unconfigured."""
import logging
from typing import Optional

import httpx

from ...errors import ToolValidationError
from ..executor import with_execution_logging
from ..registry import Tool, ToolInput, ToolOutput, ToolParam
from .upstream import DEFAULT_TIMEOUT_S, describe_upstream_error, make_client

logger = logging.getLogger(__name__)

# Google Programmable Search: 100 free queries/day
SEARCH_URL = "https://www.googleapis.com/customsearch/v1"
MAX_RESULTS = 10


class SearchTool(Tool):
    name = "search"
    description = "Search the web for information"
    params = (
        ToolParam("query", description="Search query"),
        ToolParam("limit", type="integer", description="Number of results (1-10)", required=False, default=5),
    )

    def __init__(
        self,
        api_key: str = "",
        engine_id: str = "",
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._engine_id = engine_id
        self._timeout = timeout
        self._transport = transport

    @with_execution_logging
    async def execute(self, tool_input: ToolInput) -> ToolOutput:
        try:
            params = self.validate_parameters(tool_input.parameters)
        except ToolValidationError as e:
            return ToolOutput.fail(str(e))

        query = params["query"]
        limit = max(1, min(params["limit"], MAX_RESULTS))

        if not self._api_key or not self._engine_id:
            logger.info(f"Search credentials not configured, returning placeholder for {query!r}")
            return ToolOutput.ok({"results": [{
                "title": f'Results for "{query}"',
                "snippet": "This is a placeholder search result. Configure SEARCH_API_KEY and "
                           "SEARCH_ENGINE_ID to use real search.",
                "url": "https://example.com",
            }]})

        try:
            async with make_client(self._timeout, self._transport) as client:
                resp = await client.get(SEARCH_URL, params={
                    "key": self._api_key,
                    "cx": self._engine_id,
                    "q": query,
                    "num": limit,
                })
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Search API error {e.response.status_code} for {query!r}")
            return ToolOutput.fail(describe_upstream_error(
                e, "Search", self.name,
                not_found="The search service could not be found.",
                status_messages={
                    400: "Invalid search query. Please try a different search term.",
                    403: "Search API access forbidden. Please check your API key and permissions.",
                },
            ))
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Search request failed for {query!r}: {type(e).__name__}: {e}")
            return ToolOutput.fail(describe_upstream_error(
                e, "Search", self.name, not_found="The search service could not be found.",
            ))

        results = [
            {"title": item.get("title", ""), "snippet": item.get("snippet", ""), "url": item.get("link", "")}
            for item in data.get("items", [])[:limit]
        ]
        logger.info(f"Search {query!r}: {len(results)} results")
        return ToolOutput.ok({"results": results})
