"""OpenAI vector store synchronisation for authority documents."""

from typing import Any, Dict, Optional

import httpx

from lextrust.core.config import settings
from lextrust.core.exceptions import VectorStoreError
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)


class VectorStoreClient:
    """Uploads a file to OpenAI and attaches it to the authorities store."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        store_id: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.vector_store.api_key
        self.store_id = store_id if store_id is not None else settings.vector_store.authorities_store_id
        self.base_url = (base_url or settings.vector_store.base_url).rstrip("/")
        self.headers = {"Authorization": f"Bearer {self.api_key}"}

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.store_id)

    async def sync(self, payload: bytes, filename: str, mime_type: str) -> Dict[str, Any]:
        """Upload ``payload`` and attach it to the vector store.

        Args:
            payload: Document body.
            filename: Name shown in the store, ``{slug}.{ext}``.
            mime_type: MIME type of the body.

        Returns:
            Dict with ``file_id`` and ``vector_store_id``.

        Raises:
            VectorStoreError: If the integration is not configured or either
                request fails.
        """
        if not self.is_configured:
            raise VectorStoreError("Vector store is not configured")

        try:
            async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
                upload = await client.post(
                    f"{self.base_url}/files",
                    headers=self.headers,
                    data={"purpose": "assistants"},
                    files={"file": (filename, payload, mime_type)},
                )
                if upload.status_code >= 300:
                    raise VectorStoreError(f"File upload failed: {upload.status_code} {upload.text}")
                try:
                    file_id = upload.json().get("id")
                except (ValueError, AttributeError) as e:
                    raise VectorStoreError(f"Unreadable file upload response: {upload.text[:200]}", original_error=e)
                if not file_id:
                    raise VectorStoreError("File upload response did not contain an id")

                attach = await client.post(
                    f"{self.base_url}/vector_stores/{self.store_id}/files",
                    headers={**self.headers, "OpenAI-Beta": "assistants=v2"},
                    json={"file_id": file_id},
                )
                if attach.status_code >= 300:
                    raise VectorStoreError(f"Vector store attach failed: {attach.status_code} {attach.text}")
        except httpx.HTTPError as e:
            LOGGER.error(f"Vector store request failed: {str(e)}", exc_info=True)
            raise VectorStoreError(f"Vector store error: {str(e)}", original_error=e)

        LOGGER.info(
            f"Synced {filename} to vector store",
            extra={"file_id": file_id, "vector_store_id": self.store_id},
        )
        return {"file_id": file_id, "vector_store_id": self.store_id}
