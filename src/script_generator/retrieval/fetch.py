"""HTTP fetching for pages and embedded resources.

fetch_url() is strict and raises FetchError on a non-success status.
fetch_resource() is best-effort and reports failures through FetchResult.
No retries are attempted in either case.
"""

from typing import Optional

import httpx
from ..config import get_settings
from ..errors import FetchError
from ..log import get_logger
from ..schemas.evidence import FetchResult

settings = get_settings()
logger = get_logger("fetch")

class Fetcher:
    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT
        self.headers = {
            "User-Agent": "ScriptGenerator/1.0 (evidence collector)"
        }

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, follow_redirects=True, headers=self.headers)

    def fetch_url(self, url: str) -> str:
        """
        Fetches the HTML of a URL.
        Raises FetchError carrying the response body when the status is not 200.
        """
        with self._client() as client:
            resp = client.get(url)
            if resp.status_code != 200:
                raise FetchError(url, resp.status_code, resp.text)
            return resp.text

    def fetch_resource(self, url: str) -> FetchResult:
        """
        Fetches a binary resource (usually an image).
        Never raises for HTTP, transport or malformed-URL failures; check `ok` on the result.
        """
        try:
            with self._client() as client:
                resp = client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"Resource fetch failed for {url}: {e}")
            return FetchResult(url=url, ok=False)

        if resp.status_code != 200:
            logger.debug(f"Resource fetch for {url} returned {resp.status_code}")
            return FetchResult(url=url, ok=False, status_code=resp.status_code)

        content_type = resp.headers.get("content-type", "")
        return FetchResult(
            url=url,
            ok=True,
            status_code=resp.status_code,
            content=resp.content,
            content_type=content_type.split(";")[0].strip() or "application/octet-stream",
        )

fetcher = Fetcher()
