"""Tests for the document downloader and the HTTP collaborators."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from lextrust.core.exceptions import ConfigurationError, StorageUploadError, VectorStoreError
from lextrust.services.ingestion.content import placeholder_payload
from lextrust.services.ingestion.downloader import DocumentDownloader
from lextrust.services.storage_service import StorageService
from lextrust.services.vector_store import VectorStoreClient


def _response(status_code: int, content: bytes = b"", headers=None, json_body=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.content = content
    response.text = content.decode("utf-8", errors="replace")
    response.headers = headers or {}
    response.json.return_value = json_body or {}
    return response


class TestDocumentDownloader:
    """Tests for DocumentDownloader."""

    @pytest.fixture
    def downloader(self) -> DocumentDownloader:
        return DocumentDownloader(timeout=15.0, user_agent="lextrust-tests")

    @pytest.mark.asyncio
    async def test_successful_download(self, downloader, make_document):
        """Test that a 2xx response returns the body and HTTP validators.

        Args:
            downloader: Downloader under test
            make_document: Document factory
        """
        response = _response(200, b"<p>Article 1</p>", {"etag": '"v1"', "last-modified": "Wed, 01 May 2024 10:00:00 GMT"})
        with patch("httpx.AsyncClient.get", new=AsyncMock(return_value=response)) as mock_get:
            result = await downloader.download(make_document())

        assert result.placeholder is False
        assert result.payload == b"<p>Article 1</p>"
        assert result.etag == '"v1"'
        assert result.last_modified == "Wed, 01 May 2024 10:00:00 GMT"
        assert mock_get.await_args.kwargs["headers"]["User-Agent"] == "lextrust-tests"

    @pytest.mark.asyncio
    async def test_non_2xx_uses_placeholder(self, downloader, make_document):
        """Test that an error status yields the deterministic placeholder."""
        doc = make_document(etag="feed-etag", last_modified="2024-01-01")
        with patch("httpx.AsyncClient.get", new=AsyncMock(return_value=_response(503))):
            result = await downloader.download(doc)

        assert result.placeholder is True
        assert result.payload == placeholder_payload(doc.title, doc.canonical_url)
        assert result.etag == "feed-etag"
        assert result.last_modified == "2024-01-01"
        assert result.error == "HTTP 503"

    @pytest.mark.asyncio
    async def test_network_error_uses_placeholder(self, downloader, make_document):
        """Test that timeouts never propagate."""
        with patch("httpx.AsyncClient.get", new=AsyncMock(side_effect=httpx.ReadTimeout("timed out"))):
            result = await downloader.download(make_document())

        assert result.placeholder is True
        assert result.error == "timed out"

    def test_timeout_is_clamped_by_settings(self):
        """Test that the default timeout stays within 15 to 30 seconds."""
        assert 15.0 <= DocumentDownloader().timeout <= 30.0


class TestStorageService:
    """Tests for StorageService."""

    def test_missing_credentials(self):
        """Test that missing credentials raise ConfigurationError."""
        with patch("lextrust.services.storage_service.settings") as mock_settings:
            mock_settings.supabase_url = ""
            mock_settings.supabase_service_role_key = ""
            with pytest.raises(ConfigurationError):
                StorageService()

    @pytest.mark.asyncio
    async def test_upload_overwrites(self):
        """Test that uploads are sent with ``x-upsert``."""
        service = StorageService(url="https://storage.example.test/", service_role_key="key")
        with patch("httpx.AsyncClient.post", new=AsyncMock(return_value=_response(200, json_body={"Key": "k"}))) as mock_post:
            result = await service.upload_bytes(b"body", "authorities", "org/eu/code.html", "text/html")

        assert result == {"Key": "k"}
        assert mock_post.await_args.args[0] == (
            "https://storage.example.test/storage/v1/object/authorities/org/eu/code.html"
        )
        assert mock_post.await_args.kwargs["headers"]["x-upsert"] == "true"

    @pytest.mark.asyncio
    async def test_upload_failure(self):
        """Test that a non-200 response raises StorageUploadError."""
        service = StorageService(url="https://storage.example.test", service_role_key="key")
        with patch("httpx.AsyncClient.post", new=AsyncMock(return_value=_response(400, b"bad request"))):
            with pytest.raises(StorageUploadError):
                await service.upload_bytes(b"body", "authorities", "p", "text/html")


class TestVectorStoreClient:
    """Tests for VectorStoreClient."""

    @pytest.mark.asyncio
    async def test_not_configured(self):
        """Test that syncing without credentials raises VectorStoreError."""
        client = VectorStoreClient(api_key="", store_id="")
        assert client.is_configured is False
        with pytest.raises(VectorStoreError):
            await client.sync(b"x", "a.html", "text/html")

    @pytest.mark.asyncio
    async def test_upload_then_attach(self):
        """Test that the file is uploaded and attached to the store."""
        client = VectorStoreClient(api_key="sk-test", store_id="vs_1", base_url="https://api.example.test/v1")
        responses = [_response(200, json_body={"id": "file_1"}), _response(200, json_body={})]
        with patch("httpx.AsyncClient.post", new=AsyncMock(side_effect=responses)) as mock_post:
            result = await client.sync(b"x", "a.html", "text/html")

        assert result == {"file_id": "file_1", "vector_store_id": "vs_1"}
        assert mock_post.await_args_list[1].kwargs["json"] == {"file_id": "file_1"}

    @pytest.mark.asyncio
    async def test_attach_failure(self):
        """Test that a failed attach raises VectorStoreError."""
        client = VectorStoreClient(api_key="sk-test", store_id="vs_1", base_url="https://api.example.test/v1")
        responses = [_response(200, json_body={"id": "file_1"}), _response(500, b"boom")]
        with patch("httpx.AsyncClient.post", new=AsyncMock(side_effect=responses)):
            with pytest.raises(VectorStoreError):
                await client.sync(b"x", "a.html", "text/html")

    @pytest.mark.parametrize(
        "response",
        [httpx.Response(200, text="<html>gateway</html>"), httpx.Response(200, json=["file_1"])],
    )
    @pytest.mark.asyncio
    async def test_unreadable_upload_response(self, response):
        """Test that a 2xx upload without a JSON object raises VectorStoreError."""
        client = VectorStoreClient(api_key="sk-test", store_id="vs_1", base_url="https://api.example.test/v1")
        with patch("httpx.AsyncClient.post", new=AsyncMock(return_value=response)):
            with pytest.raises(VectorStoreError, match="Unreadable file upload response"):
                await client.sync(b"x", "a.html", "text/html")
