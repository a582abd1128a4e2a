"""Adapter contract for jurisdiction-specific sources."""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from lextrust.schemas.ingestion import NormalizedDocument
from lextrust.services.ingestion.adapters.feeds import FeedClient, dedupe_documents
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseAdapter(ABC):
    """Produces candidate documents for one jurisdiction or publisher.

    Subclasses implement ``collect``; callers use ``fetch_documents``, which
    deduplicates by canonical URL.
    """

    adapter_id: str = ""
    description: str = ""

    def __init__(self, feeds: Optional[FeedClient] = None):
        self.feeds = feeds or FeedClient()

    @abstractmethod
    async def collect(self) -> Sequence[NormalizedDocument]:
        """Gather raw candidates from feeds, datasets and static lists."""

    async def fetch_documents(self) -> List[NormalizedDocument]:
        documents = dedupe_documents(await self.collect())
        LOGGER.info(
            f"Adapter {self.adapter_id} produced {len(documents)} candidates",
            extra={"adapter_id": self.adapter_id},
        )
        return documents


class StaticAdapter(BaseAdapter):
    """Adapter backed only by a fixed catalogue of documents."""

    def __init__(self, adapter_id: str, description: str, documents: Sequence[NormalizedDocument]):
        super().__init__()
        self.adapter_id = adapter_id
        self.description = description
        self._documents = list(documents)

    async def collect(self) -> Sequence[NormalizedDocument]:
        return list(self._documents)
