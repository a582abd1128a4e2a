"""Tests for the SQL built by the Source and Document repositories."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from lextrust.repositories.document_repository import DocumentRepository
from lextrust.repositories.source_repository import SourceRepository, escape_like


def _compile(statement):
    return statement.compile(dialect=postgresql.dialect())


class TestEscapeLike:
    """Tests for escape_like."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2018/45", "2018/45"),
            ("50%", "50\\%"),
            ("C_100", "C\\_100"),
            ("a\\b", "a\\\\b"),
        ],
    )
    def test_wildcards_are_escaped(self, value, expected):
        """Test that LIKE wildcards and the escape character match literally."""
        assert escape_like(value) == expected


class TestSourceRepositoryLookups:
    """Tests for the case lookups by title and version label."""

    @pytest.mark.asyncio
    async def test_title_lookup_escapes_reference(self, mock_session, org_id):
        """Test that the title pattern escapes wildcards in the reference."""
        mock_session.execute.return_value = MagicMock()
        await SourceRepository(mock_session).find_case_by_title(org_id, "FR", "n° 12_3%")

        compiled = _compile(mock_session.execute.await_args.args[0])
        assert "%n° 12\\_3\\%%" in compiled.params.values()
        assert "ESCAPE" in str(compiled)

    @pytest.mark.asyncio
    async def test_version_label_lookup_escapes_reference(self, mock_session, org_id):
        """Test that the version label pattern escapes wildcards too."""
        mock_session.execute.return_value = MagicMock()
        await SourceRepository(mock_session).find_case_by_version_label(org_id, "BE", "100%")

        compiled = _compile(mock_session.execute.await_args.args[0])
        assert "%100\\%%" in compiled.params.values()


class TestDocumentRepositoryUpsert:
    """Tests for DocumentRepository.upsert."""

    @pytest.mark.asyncio
    async def test_conflict_resets_vector_store_sync(self, mock_session, org_id):
        """Test that re-storing a document clears the previous vector sync."""
        mock_session.scalars = AsyncMock()
        await DocumentRepository(mock_session).upsert(
            {
                "org_id": org_id,
                "source_id": uuid4(),
                "name": "code-civil.html",
                "bucket_id": "authorities",
                "storage_path": f"{org_id}/eu/code-civil.html",
                "mime_type": "text/html",
                "bytes": 42,
                "residency_zone": "eu",
            }
        )

        compiled = _compile(mock_session.scalars.await_args.args[0])
        update_clause = str(compiled).split("DO UPDATE SET", 1)[1]
        for column in ("vector_store_status", "vector_store_file_id", "vector_store_error", "vector_store_synced_at"):
            assert f"{column} = " in update_clause
        assert "pending" in compiled.params.values()
