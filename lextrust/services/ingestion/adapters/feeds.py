"""Feed and dataset helpers shared by the adapters.

Every helper degrades to an empty list on network or parse failure so that a
broken upstream never aborts an adapter.
"""

import json
from datetime import date
from importlib import resources
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence

import httpx
from bs4 import BeautifulSoup
from dateutil import parser as dateparser
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_snake

from lextrust.core.config import settings
from lextrust.schemas.ingestion import NormalizedDocument
from lextrust.services.ingestion.identifiers import resolve_residency_zone
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)

RSS_ACCEPT = "application/rss+xml, application/atom+xml, application/xml;q=0.9"
FIXTURE_PACKAGE = "lextrust.services.ingestion"

# dataset keys that do not map onto field names by case conversion alone
_DATASET_KEY_ALIASES = {
    "jurisdiction": "jurisdiction_code",
    "residency": "residency_override",
}


class FeedItem(NamedTuple):
    title: Optional[str]
    link: Optional[str]
    pub_date: Optional[date]


ItemMapper = Callable[[FeedItem], Optional[NormalizedDocument]]


def parse_feed_date(value: Optional[str]) -> Optional[date]:
    """Calendar date of an RSS ``pubDate`` or Atom timestamp."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return dateparser.parse(value.strip()).date()
    except (ValueError, OverflowError):
        return None


def _text(node) -> Optional[str]:
    if node is None:
        return None
    value = node.get_text(strip=True)
    return value or None


def parse_feed_items(xml: str, limit: int) -> List[FeedItem]:
    """Extract ``title``/``link``/``pubDate`` from RSS items or Atom entries."""
    soup = BeautifulSoup(xml, "xml")
    items: List[FeedItem] = []

    for item in soup.find_all("item", limit=limit):
        items.append(
            FeedItem(
                title=_text(item.find("title")),
                link=_text(item.find("link")),
                pub_date=parse_feed_date(_text(item.find("pubDate"))),
            )
        )
    if items:
        return items

    for entry in soup.find_all("entry", limit=limit):
        link_node = entry.find("link", attrs={"rel": "alternate"}) or entry.find("link")
        link = None
        if link_node is not None:
            link = link_node.get("href") or _text(link_node)
        published = _text(entry.find("published")) or _text(entry.find("updated"))
        items.append(FeedItem(title=_text(entry.find("title")), link=link, pub_date=parse_feed_date(published)))
    return items


def dedupe_documents(documents: Iterable[NormalizedDocument]) -> List[NormalizedDocument]:
    """Keep the first document per canonical URL, compared case-insensitively."""
    seen = set()
    result: List[NormalizedDocument] = []
    for doc in documents:
        if doc.dedup_key in seen:
            continue
        seen.add(doc.dedup_key)
        result.append(doc)
    return result


def load_fixture(name: str) -> List[Dict[str, Any]]:
    """Bundled dataset ``fixtures/{name}.json``; empty when disabled or missing."""
    if not settings.ingestion.use_fixture_fallback:
        return []
    try:
        raw = resources.files(FIXTURE_PACKAGE).joinpath("fixtures").joinpath(f"{name}.json").read_text(encoding="utf-8")
        parsed = json.loads(raw)
    except (OSError, ValueError) as e:
        LOGGER.warning(f"Unable to load fixture {name}: {str(e)}")
        return []
    return parsed if isinstance(parsed, list) else []


def _snake_keys(entry: Dict[str, Any]) -> Dict[str, Any]:
    converted = {}
    for key, value in entry.items():
        snake = to_snake(key)
        converted[_DATASET_KEY_ALIASES.get(snake, snake)] = value
    return converted


def normalise_dataset(
    entries: Sequence[Dict[str, Any]],
    overrides: Dict[str, Any],
    limit: Optional[int] = None,
) -> List[NormalizedDocument]:
    """Turn raw dataset rows into documents, applying adapter overrides.

    Args:
        entries: Rows from a remote dataset or fixture, snake_case or camelCase.
        overrides: Field values forced onto every row.
        limit: Maximum number of documents to return.

    Returns:
        Valid documents; rows that fail validation are logged and dropped.
    """
    documents: List[NormalizedDocument] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        merged = {**_snake_keys(entry), **overrides}
        merged["binding_language"] = merged.get("binding_language") or overrides.get("binding_language") or "fr"
        merged["mime_type"] = merged.get("mime_type") or overrides.get("mime_type") or "text/html"
        merged["residency_override"] = (
            merged.get("residency_override") or resolve_residency_zone(merged.get("jurisdiction_code", ""))
        ).lower()
        try:
            documents.append(NormalizedDocument.model_validate(merged))
        except PydanticValidationError as e:
            LOGGER.warning(
                f"Dropping invalid dataset row: {e.error_count()} errors",
                extra={"canonical_url": merged.get("canonical_url")},
            )
            continue
        if limit and len(documents) >= limit:
            break
    return documents


class FeedClient:
    """HTTP access to RSS/Atom feeds and JSON datasets."""

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        self.timeout = timeout or settings.ingestion.adapter_fetch_timeout_seconds
        self.user_agent = user_agent or settings.ingestion.user_agent

    async def _get(self, url: str, accept: str) -> httpx.Response:
        async with httpx.AsyncClient(follow_redirects=True, timeout=self.timeout) as client:
            response = await client.get(url, headers={"Accept": accept, "User-Agent": self.user_agent})
        response.raise_for_status()
        return response

    async def fetch_rss(self, url: str, mapper: ItemMapper, limit: int = 10) -> List[NormalizedDocument]:
        """Map up to ``limit`` feed items to documents; empty on failure."""
        try:
            response = await self._get(url, RSS_ACCEPT)
        except httpx.HTTPError as e:
            LOGGER.warning(f"Unable to fetch feed {url}: {str(e)}")
            return []

        documents = []
        for item in parse_feed_items(response.text, limit):
            mapped = mapper(item)
            if mapped is not None:
                documents.append(mapped)
        return documents

    async def fetch_first_available_rss(
        self, urls: Sequence[str], mapper: ItemMapper, limit: int = 10
    ) -> List[NormalizedDocument]:
        """Documents from the first feed in ``urls`` that yields any."""
        for url in urls:
            documents = await self.fetch_rss(url, mapper, limit)
            if documents:
                return documents
        return []

    async def fetch_json(self, url: str) -> Any:
        """Decoded JSON body, or ``None`` when unavailable."""
        try:
            response = await self._get(url, "application/json")
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            LOGGER.warning(f"Remote dataset unavailable for {url}: {str(e)}")
            return None

    async def fetch_remote_dataset(self, url: str) -> List[Dict[str, Any]]:
        """JSON array dataset rows, or an empty list."""
        payload = await self.fetch_json(url)
        return payload if isinstance(payload, list) else []
