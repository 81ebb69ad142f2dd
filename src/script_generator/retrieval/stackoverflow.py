"""Stack Overflow search through the Stack Exchange API.

Request parameters are built fresh for every call from the base settings
plus the query and tags, so nothing carries over between searches.
"""

from typing import Any, Dict, Iterable, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from ..config import get_settings
from ..log import get_logger
from ..schemas.evidence import SearchItem

settings = get_settings()
logger = get_logger("stackoverflow")


class SearchParams(BaseModel):
    """Query string for /search/advanced. Only open, non-migrated questions with an accepted answer."""
    model_config = ConfigDict(frozen=True)

    q: str
    tagged: str = ""
    pagesize: int = Field(100, ge=1, le=100)
    order: str = "desc"
    sort: str = "relevance"
    accepted: bool = True
    closed: bool = False
    migrated: bool = False
    notice: bool = False
    wiki: bool = False
    site: str = "stackoverflow"
    filter: str = ""
    access_token: str = ""
    key: str = ""

    @classmethod
    def build(cls, query: str, tags: Iterable[str], **kwargs) -> "SearchParams":
        return cls(q=query, tagged=";".join(sorted(set(tags))), **kwargs)

    def to_query(self) -> Dict[str, Any]:
        query = {}
        for name, value in self.model_dump().items():
            if isinstance(value, bool):
                value = "true" if value else "false"
            if value == "" and name in ("access_token", "key", "tagged", "filter"):
                continue
            query[name] = value
        return query


class StackOverflowSearch:
    def __init__(
        self,
        api_url: Optional[str] = None,
        response_filter: Optional[str] = None,
        access_token: Optional[str] = None,
        key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_url = api_url or settings.STACKEXCHANGE_API_URL
        self.response_filter = response_filter or settings.STACKEXCHANGE_FILTER
        self.access_token = access_token if access_token is not None else settings.STACKEXCHANGE_ACCESS_TOKEN
        self.key = key if key is not None else settings.STACKEXCHANGE_KEY
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT

    def build_params(
        self,
        query: str,
        tags: Iterable[str],
        page_size: int = 100,
        access_token: Optional[str] = None,
        key: Optional[str] = None,
    ) -> SearchParams:
        return SearchParams.build(
            query,
            tags,
            pagesize=page_size,
            filter=self.response_filter,
            access_token=access_token or self.access_token,
            key=key or self.key,
        )

    def search(
        self,
        query: str,
        tags: Iterable[str],
        page_size: int = 100,
        access_token: Optional[str] = None,
        key: Optional[str] = None,
    ) -> List[SearchItem]:
        """
        Fetch one page of questions ranked by relevance.
        HTTP errors propagate as httpx.HTTPStatusError. No match returns [].
        """
        params = self.build_params(query, tags, page_size, access_token=access_token, key=key)
        with httpx.Client(timeout=self.timeout) as client:
            resp = client.get(self.api_url, params=params.to_query())
            resp.raise_for_status()
            data = resp.json()

        if "quota_remaining" in data:
            logger.info(f"Stack Exchange quota remaining: {data['quota_remaining']}/{data.get('quota_max', '?')}")
        if data.get("has_more"):
            logger.debug("More results available beyond the first page")

        return [SearchItem.model_validate(item) for item in data.get("items", [])]


stackoverflow_search = StackOverflowSearch()
