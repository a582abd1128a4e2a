"""Tests for feed parsing, dataset normalisation and adapters."""

from datetime import date
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from lextrust.schemas.ingestion import SourceType
from lextrust.services.ingestion.adapters import StaticAdapter, get_adapter, list_adapters
from lextrust.services.ingestion.adapters.feeds import (
    FeedClient,
    FeedItem,
    dedupe_documents,
    load_fixture,
    normalise_dataset,
    parse_feed_date,
    parse_feed_items,
)
from lextrust.services.ingestion.adapters.sources import feed_mapper

RSS = """<?xml version="1.0"?>
<rss version="2.0"><channel>
  <item><title>Loi n° 2024-1</title><link>https://www.legifrance.gouv.fr/jorf/id/JORFTEXT1</link>
        <pubDate>Tue, 02 Jan 2024 08:00:00 GMT</pubDate></item>
  <item><title>Décret n° 2024-2</title><link>https://www.legifrance.gouv.fr/jorf/id/JORFTEXT2</link></item>
</channel></rss>"""

ATOM = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <entry><title>RS 220</title><link rel="alternate" href="https://www.fedlex.admin.ch/eli/cc/27/317_321_377/fr"/>
         <updated>2024-03-01T00:00:00Z</updated></entry>
</feed>"""


class TestFeedParsing:
    """Tests for RSS and Atom parsing."""

    def test_rss_items(self):
        """Test that RSS items yield title, link and date."""
        items = parse_feed_items(RSS, limit=10)
        assert items[0] == FeedItem(
            title="Loi n° 2024-1",
            link="https://www.legifrance.gouv.fr/jorf/id/JORFTEXT1",
            pub_date=date(2024, 1, 2),
        )
        assert items[1].pub_date is None

    def test_rss_limit(self):
        """Test that the limit caps the number of items."""
        assert len(parse_feed_items(RSS, limit=1)) == 1

    def test_atom_entries(self):
        """Test that Atom entries are used when there are no RSS items."""
        items = parse_feed_items(ATOM, limit=10)
        assert items == [
            FeedItem(
                title="RS 220",
                link="https://www.fedlex.admin.ch/eli/cc/27/317_321_377/fr",
                pub_date=date(2024, 3, 1),
            )
        ]

    @pytest.mark.parametrize("value", [None, "", "not a date"])
    def test_unparsable_dates(self, value):
        """Test that bad dates become None."""
        assert parse_feed_date(value) is None


class TestFeedClient:
    """Tests for FeedClient network fallbacks."""

    @pytest.mark.asyncio
    async def test_fetch_rss_failure_returns_empty(self):
        """Test that a network error yields an empty list."""
        mapper = feed_mapper(
            jurisdiction_code="FR",
            source_type=SourceType.STATUTE,
            publisher="Légifrance",
            version_label="JORF",
            residency="eu",
        )
        with patch("httpx.AsyncClient.get", new=AsyncMock(side_effect=httpx.ConnectError("down"))):
            documents = await FeedClient(timeout=1).fetch_rss("https://www.legifrance.gouv.fr/rss/jorf.xml", mapper)
        assert documents == []

    @pytest.mark.asyncio
    async def test_fetch_remote_dataset_rejects_non_lists(self):
        """Test that a JSON object is not treated as dataset rows."""
        client = FeedClient(timeout=1)
        with patch.object(client, "fetch_json", new=AsyncMock(return_value={"items": []})):
            assert await client.fetch_remote_dataset("https://example.test/data.json") == []


class TestFeedMapper:
    """Tests for the per-publisher feed mapper."""

    def test_maps_item(self):
        """Test that an item becomes a normalised document."""
        mapper = feed_mapper(
            jurisdiction_code="ch",
            source_type=SourceType.STATUTE,
            publisher="Fedlex",
            version_label="RS",
            residency="ch",
            date_field="adoption_date",
        )
        doc = mapper(FeedItem(title="RS 220", link="https://www.fedlex.admin.ch/eli/cc/27", pub_date=date(2024, 3, 1)))
        assert doc.jurisdiction_code == "CH"
        assert doc.download_url == doc.canonical_url
        assert doc.adoption_date == date(2024, 3, 1)
        assert doc.binding_language == "fr"

    def test_skips_items_without_link(self):
        """Test that incomplete items are dropped."""
        mapper = feed_mapper(
            jurisdiction_code="FR",
            source_type=SourceType.STATUTE,
            publisher="Légifrance",
            version_label="JORF",
            residency="eu",
        )
        assert mapper(FeedItem(title="Sans lien", link=None, pub_date=None)) is None


class TestDatasets:
    """Tests for dataset rows and bundled fixtures."""

    def test_normalise_camel_case_rows(self):
        """Test that camelCase rows are converted and overrides applied."""
        rows = [
            {
                "title": "Loi organique",
                "jurisdiction": "rw",
                "sourceType": "statute",
                "canonicalUrl": "https://www.amategeko.gov.rw/loi/1",
                "downloadUrl": "https://www.amategeko.gov.rw/loi/1.pdf",
                "mimeType": "application/pdf",
            },
            {"title": "missing fields"},
            "not a row",
        ]
        documents = normalise_dataset(rows, {"publisher": "Amategeko"})

        assert len(documents) == 1
        doc = documents[0]
        assert doc.jurisdiction_code == "RW"
        assert doc.publisher == "Amategeko"
        assert doc.mime_type == "application/pdf"
        assert doc.binding_language == "fr"
        assert doc.residency_override == "rw"

    def test_limit(self):
        """Test that the limit stops normalisation early."""
        rows = [
            {
                "title": f"Acte {index}",
                "jurisdiction_code": "OHADA",
                "source_type": "statute",
                "canonical_url": f"https://www.ohada.org/acte/{index}",
            }
            for index in range(5)
        ]
        assert len(normalise_dataset(rows, {}, limit=2)) == 2

    def test_bundled_fixture(self):
        """Test that a bundled fixture loads as a list of rows."""
        rows = load_fixture("rwanda")
        assert isinstance(rows, list)
        assert rows

    def test_missing_fixture(self):
        """Test that an unknown fixture yields an empty list."""
        assert load_fixture("does-not-exist") == []


class TestAdapters:
    """Tests for adapter deduplication and the registry."""

    @pytest.mark.asyncio
    async def test_fetch_documents_dedupes_case_insensitively(self, make_document):
        """Test that the first candidate per canonical URL wins, ignoring case."""
        first = make_document(title="Premier", canonical_url="https://www.legifrance.gouv.fr/jorf/id/ABC")
        duplicate = make_document(title="Doublon", canonical_url="https://www.legifrance.gouv.fr/JORF/ID/abc")
        other = make_document(title="Autre", canonical_url="https://www.legifrance.gouv.fr/jorf/id/XYZ")
        adapter = StaticAdapter("test-static", "Static", [first, duplicate, other])

        documents = await adapter.fetch_documents()

        assert [doc.title for doc in documents] == ["Premier", "Autre"]

    def test_dedupe_documents_keeps_order(self, make_document):
        """Test that deduplication preserves the original order."""
        docs = [make_document(canonical_url=f"https://www.legifrance.gouv.fr/{key}") for key in ("b", "a", "B")]
        assert [doc.canonical_url for doc in dedupe_documents(docs)] == [
            "https://www.legifrance.gouv.fr/b",
            "https://www.legifrance.gouv.fr/a",
        ]

    def test_registry(self):
        """Test that every jurisdiction adapter is registered in run order."""
        ids = [adapter.adapter_id for adapter in list_adapters()]
        assert ids[0] == "ohada-uniform-acts"
        assert {"fr-legifrance-core", "be-justel-core", "qc-authorities-core", "rw-official-gazette"} <= set(ids)
        assert len(ids) == len(set(ids))

    def test_unknown_adapter(self):
        """Test that unknown ids return None."""
        assert get_adapter("nope") is None
        assert get_adapter("ch-fedlex-core").adapter_id == "ch-fedlex-core"
