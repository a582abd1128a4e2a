"""Document downloader with a bounded timeout and placeholder fallback."""

from typing import Optional

import httpx

from lextrust.core.config import settings
from lextrust.schemas.ingestion import DownloadResult, NormalizedDocument
from lextrust.services.ingestion.content import placeholder_payload
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DocumentDownloader:
    """Fetches candidate bodies over HTTP.

    A failed download never aborts ingestion: the caller receives a
    deterministic placeholder body carrying the candidate's own ETag and
    Last-Modified so that change detection stays stable.
    """

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        self.timeout = timeout or settings.ingestion.download_timeout_seconds
        self.user_agent = user_agent or settings.ingestion.user_agent

    async def download(self, doc: NormalizedDocument) -> DownloadResult:
        """Download ``doc.download_url``.

        Args:
            doc: Candidate document.

        Returns:
            DownloadResult with the body, or a placeholder when the request
            failed or returned a non-2xx status.
        """
        try:
            async with httpx.AsyncClient(follow_redirects=True, timeout=self.timeout) as client:
                response = await client.get(doc.download_url, headers={"User-Agent": self.user_agent})

            if response.status_code < 200 or response.status_code >= 300:
                return self._placeholder(doc, f"HTTP {response.status_code}")

            return DownloadResult(
                payload=response.content,
                etag=response.headers.get("etag"),
                last_modified=response.headers.get("last-modified"),
            )
        except httpx.HTTPError as e:
            return self._placeholder(doc, str(e) or e.__class__.__name__)

    def _placeholder(self, doc: NormalizedDocument, error: str) -> DownloadResult:
        LOGGER.warning(
            f"Download failed, using placeholder: {error}",
            extra={"download_url": doc.download_url, "canonical_url": doc.canonical_url},
        )
        return DownloadResult(
            payload=placeholder_payload(doc.title, doc.canonical_url),
            etag=doc.etag,
            last_modified=doc.last_modified,
            placeholder=True,
            error=error,
        )
