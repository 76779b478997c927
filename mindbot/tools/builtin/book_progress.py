"""Book progress tool — scrapes the writing-progress bar from an author's site."""
import logging
import re
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from ...errors import ToolValidationError
from ..executor import with_execution_logging
from ..registry import Tool, ToolInput, ToolOutput
from .upstream import BROWSER_USER_AGENT, DEFAULT_TIMEOUT_S, describe_upstream_error, make_client

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://www.jim-butcher.com/"

PROGRESS_SELECTOR = ".wpsm_progress-value"
TITLE_SELECTOR = ".wpsm_progress-title"

_COMPILING_SUFFIX = re.compile(r"\s*Compiling\.\.\.\s*$", re.IGNORECASE)


def parse_progress(html: str) -> Optional[dict]:
    """Extract {book_name, progress, full_title}; None if either field is missing."""
    soup = BeautifulSoup(html, "html.parser")
    progress_el = soup.select_one(PROGRESS_SELECTOR)
    title_el = soup.select_one(TITLE_SELECTOR)

    progress = progress_el.get_text(strip=True) if progress_el else ""
    # Title's own text only; child elements hold the percentage label.
    full_title = "".join(title_el.find_all(string=True, recursive=False)).strip() if title_el else ""
    if not progress or not full_title:
        return None

    return {
        "book_name": _COMPILING_SUFFIX.sub("", full_title).strip(),
        "progress": progress,
        "full_title": full_title,
    }


class BookProgressTool(Tool):
    name = "book_progress"
    description = "Get the writing progress of Jim Butcher's next book"
    params = ()

    def __init__(
        self,
        url: str = DEFAULT_URL,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._url = url
        self._timeout = timeout
        self._transport = transport

    @with_execution_logging
    async def execute(self, tool_input: ToolInput) -> ToolOutput:
        try:
            self.validate_parameters(tool_input.parameters)
        except ToolValidationError as e:
            return ToolOutput.fail(str(e))

        try:
            async with make_client(self._timeout, self._transport,
                                   headers={"User-Agent": BROWSER_USER_AGENT}) as client:
                resp = await client.get(self._url, follow_redirects=True)
                resp.raise_for_status()
                html = resp.text
        except httpx.HTTPError as e:
            logger.error(f"Fetching {self._url} failed: {type(e).__name__}: {e}")
            return ToolOutput.fail(describe_upstream_error(
                e, "Author website", self.name,
                not_found="The author's website is not accessible.",
                status_messages={401: "The author's website refused the request.",
                                 403: "The author's website refused the request."},
            ))

        progress = parse_progress(html)
        if progress is None:
            logger.warning(f"Progress markup not found at {self._url}")
            return ToolOutput.fail("Could not find progress information on the author's website.")

        logger.info(f"Book progress: {progress['book_name']} {progress['progress']}")
        return ToolOutput.ok(progress)
