"""Storage service for handling Supabase storage operations."""

import httpx
from typing import Dict, Any, Optional
from lextrust.core.config import settings
from lextrust.utils.logging import get_logger
from lextrust.core.exceptions import ConfigurationError, StorageUploadError

LOGGER = get_logger(__name__)


class StorageService:
    """Service for managing authority files in Supabase storage."""

    def __init__(self, url: Optional[str] = None, service_role_key: Optional[str] = None):
        self.url = (url or settings.supabase_url).rstrip("/")
        self.service_role_key = service_role_key or settings.supabase_service_role_key
        if not self.url or not self.service_role_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be configured")
        self.base_api_url = f"{self.url}/storage/v1"
        self.headers = {
            "Authorization": f"Bearer {self.service_role_key}",
            "apikey": self.service_role_key,
        }

    async def upload_bytes(
        self,
        payload: bytes,
        bucket: str,
        path: str,
        content_type: str,
    ) -> Dict[str, Any]:
        """Upload bytes to Supabase storage, overwriting any existing object.

        Args:
            payload: The file body.
            bucket: Target bucket name.
            path: Target path within the bucket.
            content_type: MIME type sent with the object.

        Returns:
            Dict containing the upload result.

        Raises:
            StorageUploadError: If the upload fails.
        """
        upload_url = f"{self.base_api_url}/object/{bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    upload_url,
                    headers={**self.headers, "Content-Type": content_type, "x-upsert": "true"},
                    content=payload,
                    timeout=settings.http_timeout
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error uploading file to Supabase: {str(e)}", exc_info=True)
            raise StorageUploadError(f"Storage upload error: {str(e)}", original_error=e)

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to upload file to Supabase: {response.text}",
                extra={"bucket": bucket, "path": path, "status_code": response.status_code}
            )
            raise StorageUploadError(f"Upload failed: {response.text}")

        return response.json()
