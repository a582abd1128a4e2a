"""Upstream feeds and open datasets for each publisher.

Each ``fetch_*`` coroutine returns normalised candidates and falls back to a
remote dataset or bundled fixture when the live feed yields nothing.
"""

import html
from typing import Any, Dict, List, Optional

from lextrust.core.config import settings
from lextrust.schemas.ingestion import NormalizedDocument, SourceType
from lextrust.services.ingestion.adapters.feeds import (
    FeedClient,
    FeedItem,
    ItemMapper,
    load_fixture,
    normalise_dataset,
    parse_feed_date,
)
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)

OPEN_DATA_BASE = "https://raw.githubusercontent.com/open-legal-data/francophone-law-docs/refs/heads/main"

LEGIFRANCE_JORF_RSS = "https://www.legifrance.gouv.fr/rss/jorf.xml"
JUSTEL_RSS = "https://www.ejustice.just.fgov.be/cgi/rss_lg.pl?language=fr&la=F&view=justel"
LEGILUX_RSS = "https://legilux.public.lu/opendata/jo/jo.rss"
FEDLEX_FEED = "https://www.fedlex.admin.ch/opendata/feed/fr/cc"
LEGISQUEBEC_RSS = (
    "https://www.legisquebec.gouv.qc.ca/fr/rss/chapitres",
    "https://www.legisquebec.gouv.qc.ca/fr/rss/publications",
)
CANLII_RSS = (
    "https://www.canlii.org/fr/qc/rss.xml",
    "https://www.canlii.org/fr/ca/rss.xml",
)
JUSTICE_LAWS_RSS = (
    "https://laws-lois.justice.gc.ca/eng/XML/rss.xml",
    "https://laws-lois.justice.gc.ca/eng/rss.xml",
)
SCC_RSS = "https://www.scc-csc.ca/case-dossier/cms-sgd/rss/fra.xml"
TRIBUNAL_FEDERAL_RSS = "https://www.bger.ch/ext/eurospider/live/fr/php/rss.php"
CCJA_RSS = "https://www.ohada.org/index.php/fr/ccja/jurisprudence?format=feed&type=rss"
OHADA_DOCUMENTS_API = "https://www.ohada.org/wp-json/wp/v2/document?per_page=50"
GAZETTES_AFRICA_API = "https://api.gazettes.africa/v1/gazettes/"


def feed_mapper(
    *,
    jurisdiction_code: str,
    source_type: SourceType,
    publisher: str,
    version_label: str,
    residency: str,
    binding_language: str = "fr",
    consolidated: bool = False,
    language_note: Optional[str] = None,
    date_field: str = "effective_date",
) -> ItemMapper:
    """Build a mapper from feed items to documents for one publisher.

    Items without a title or link are skipped. The item date populates
    ``date_field`` (``effective_date`` or ``adoption_date``).
    """

    def mapper(item: FeedItem) -> Optional[NormalizedDocument]:
        if not item.title or not item.link:
            return None
        return NormalizedDocument(
            title=item.title,
            jurisdiction_code=jurisdiction_code,
            source_type=source_type,
            publisher=publisher,
            canonical_url=item.link,
            download_url=item.link,
            binding_language=binding_language,
            consolidated=consolidated,
            language_note=language_note,
            version_label=version_label,
            mime_type="text/html",
            residency_override=residency,
            **{date_field: item.pub_date},
        )

    return mapper


async def _with_dataset_fallback(
    feeds: FeedClient,
    documents: List[NormalizedDocument],
    overrides: Dict[str, Any],
    limit: int,
    fixture: str,
    remote: Optional[str] = None,
) -> List[NormalizedDocument]:
    if documents:
        return documents
    if remote:
        rows = await feeds.fetch_remote_dataset(f"{OPEN_DATA_BASE}/{remote}.json")
        if rows:
            return normalise_dataset(rows, overrides, limit)
    return normalise_dataset(load_fixture(fixture), overrides, limit)


async def fetch_legifrance_jorf(feeds: FeedClient, limit: int = 8) -> List[NormalizedDocument]:
    mapper = feed_mapper(
        jurisdiction_code="FR",
        source_type=SourceType.GAZETTE,
        publisher="Légifrance",
        version_label="Journal officiel (RSS)",
        residency="eu",
    )
    return await feeds.fetch_rss(LEGIFRANCE_JORF_RSS, mapper, limit)


async def fetch_justel(feeds: FeedClient, limit: int = 8) -> List[NormalizedDocument]:
    mapper = feed_mapper(
        jurisdiction_code="BE",
        source_type=SourceType.REGULATION,
        publisher="Moniteur belge",
        version_label="Flux RSS Justel",
        residency="eu",
    )
    documents = await feeds.fetch_rss(JUSTEL_RSS, mapper, limit)
    overrides = {"jurisdiction_code": "BE", "residency_override": "eu"}
    return await _with_dataset_fallback(feeds, documents, overrides, limit, fixture="justel")


async def fetch_legilux(feeds: FeedClient, limit: int = 8) -> List[NormalizedDocument]:
    mapper = feed_mapper(
        jurisdiction_code="LU",
        source_type=SourceType.REGULATION,
        publisher="Legilux",
        version_label="Flux RSS Legilux",
        residency="eu",
        date_field="adoption_date",
    )
    documents = await feeds.fetch_rss(LEGILUX_RSS, mapper, limit)
    overrides = {"jurisdiction_code": "LU", "residency_override": "eu"}
    return await _with_dataset_fallback(feeds, documents, overrides, limit, fixture="legilux")


async def fetch_fedlex(feeds: FeedClient, limit: int = 6) -> List[NormalizedDocument]:
    mapper = feed_mapper(
        jurisdiction_code="CH",
        source_type=SourceType.STATUTE,
        publisher="Fedlex",
        version_label="Flux Fedlex",
        residency="ch",
        consolidated=True,
    )
    documents = await feeds.fetch_rss(FEDLEX_FEED, mapper, limit)
    overrides = {"jurisdiction_code": "CH", "residency_override": "ch"}
    return await _with_dataset_fallback(feeds, documents, overrides, limit, fixture="fedlex")


async def fetch_legisquebec(feeds: FeedClient, limit: int = 8) -> List[NormalizedDocument]:
    mapper = feed_mapper(
        jurisdiction_code="CA-QC",
        source_type=SourceType.STATUTE,
        publisher="LégisQuébec",
        version_label="Flux LégisQuébec",
        residency="ca",
        binding_language="fr/en",
        consolidated=True,
    )
    documents = await feeds.fetch_first_available_rss(LEGISQUEBEC_RSS, mapper, limit)
    overrides = {"jurisdiction_code": "CA-QC", "residency_override": "ca", "binding_language": "fr/en"}
    return await _with_dataset_fallback(
        feeds, documents, overrides, limit, fixture="legisquebec", remote="legisquebec"
    )


async def fetch_canlii(feeds: FeedClient, limit: int = 6) -> List[NormalizedDocument]:
    mapper = feed_mapper(
        jurisdiction_code="CA-QC",
        source_type=SourceType.CASE,
        publisher="CanLII",
        version_label="Flux CanLII",
        residency="ca",
        binding_language="fr/en",
    )
    documents = await feeds.fetch_first_available_rss(CANLII_RSS, mapper, limit)
    overrides = {"jurisdiction_code": "CA-QC", "residency_override": "ca", "binding_language": "fr/en"}
    return await _with_dataset_fallback(feeds, documents, overrides, limit, fixture="canlii", remote="canlii")


async def fetch_justice_laws(feeds: FeedClient, limit: int = 6) -> List[NormalizedDocument]:
    mapper = feed_mapper(
        jurisdiction_code="CA",
        source_type=SourceType.STATUTE,
        publisher="Justice Laws Website",
        version_label="Flux Justice Laws",
        residency="ca",
        binding_language="fr/en",
        consolidated=True,
    )
    documents = await feeds.fetch_first_available_rss(JUSTICE_LAWS_RSS, mapper, limit)
    overrides = {"jurisdiction_code": "CA", "residency_override": "ca", "binding_language": "fr/en"}
    return await _with_dataset_fallback(
        feeds, documents, overrides, limit, fixture="justicelaws", remote="justicelaws"
    )


async def fetch_supreme_court(feeds: FeedClient, limit: int = 6) -> List[NormalizedDocument]:
    mapper = feed_mapper(
        jurisdiction_code="CA",
        source_type=SourceType.CASE,
        publisher="Cour suprême du Canada",
        version_label="RSS CSC",
        residency="ca",
        binding_language="fr/en",
        language_note="Motifs disponibles en français et en anglais.",
    )
    documents = await feeds.fetch_rss(SCC_RSS, mapper, limit)
    overrides = {"jurisdiction_code": "CA", "residency_override": "ca", "binding_language": "fr/en"}
    return await _with_dataset_fallback(feeds, documents, overrides, limit, fixture="scc")


async def fetch_tribunal_federal(feeds: FeedClient, limit: int = 6) -> List[NormalizedDocument]:
    mapper = feed_mapper(
        jurisdiction_code="CH",
        source_type=SourceType.CASE,
        publisher="Tribunal fédéral",
        version_label="RSS Tribunal fédéral",
        residency="ch",
    )
    documents = await feeds.fetch_rss(TRIBUNAL_FEDERAL_RSS, mapper, limit)
    overrides = {"jurisdiction_code": "CH", "residency_override": "ch", "binding_language": "fr"}
    return await _with_dataset_fallback(feeds, documents, overrides, limit, fixture="tribunalfederal")


async def fetch_ccja(feeds: FeedClient, limit: int = 6) -> List[NormalizedDocument]:
    mapper = feed_mapper(
        jurisdiction_code="OHADA",
        source_type=SourceType.CASE,
        publisher="CCJA",
        version_label="RSS CCJA",
        residency="ohada",
    )
    documents = await feeds.fetch_rss(CCJA_RSS, mapper, limit)
    overrides = {"jurisdiction_code": "OHADA", "residency_override": "ohada", "binding_language": "fr"}
    return await _with_dataset_fallback(feeds, documents, overrides, limit, fixture="ccja")


async def fetch_ohada_documents(feeds: FeedClient) -> List[NormalizedDocument]:
    """Uniform acts published through the OHADA WordPress API."""
    payload = await feeds.fetch_json(OHADA_DOCUMENTS_API)
    if not isinstance(payload, list):
        return []

    documents = []
    for entry in payload:
        if not isinstance(entry, dict):
            continue
        title = entry.get("title")
        if isinstance(title, dict):
            title = title.get("rendered")
        link = entry.get("link")
        if not isinstance(title, str) or not title or not isinstance(link, str) or not link:
            continue
        documents.append(
            NormalizedDocument(
                title=html.unescape(title),
                jurisdiction_code="OHADA",
                source_type=SourceType.STATUTE,
                publisher="OHADA",
                canonical_url=link,
                download_url=link,
                binding_language="fr",
                consolidated=True,
                mime_type="text/html",
            )
        )
    return documents


async def fetch_gazettes_africa(
    feeds: FeedClient,
    api_country: str,
    jurisdiction_code: str,
    binding_language: str,
    language_note: str,
    limit: Optional[int] = None,
) -> List[NormalizedDocument]:
    """Recent gazettes for one country from the Gazettes.Africa API."""
    page_size = limit or settings.ingestion.gazettes_page_size
    url = f"{GAZETTES_AFRICA_API}?country={api_country}&ordering=-publication_date&page_size={page_size}"
    payload = await feeds.fetch_json(url)
    results = payload.get("results") if isinstance(payload, dict) else None
    if not isinstance(results, list):
        return []

    documents = []
    for entry in results:
        if not isinstance(entry, dict):
            continue
        title = entry.get("title")
        pdf_url = entry.get("file_url")
        web_url = entry.get("source_url") or pdf_url
        if not isinstance(title, str) or not title or not isinstance(pdf_url, str) or not pdf_url:
            continue
        documents.append(
            NormalizedDocument(
                title=title,
                jurisdiction_code=jurisdiction_code,
                source_type=SourceType.GAZETTE,
                publisher="Gazettes.Africa",
                canonical_url=web_url,
                download_url=pdf_url,
                binding_language=binding_language,
                language_note=language_note,
                consolidated=False,
                effective_date=parse_feed_date(entry.get("publication_date")),
                version_label="Gazettes Africa",
                mime_type="application/pdf",
            )
        )
    return documents


async def fetch_rwanda(feeds: FeedClient) -> List[NormalizedDocument]:
    rows = await feeds.fetch_remote_dataset(f"{OPEN_DATA_BASE}/rwanda.json")
    if not rows:
        rows = load_fixture("rwanda")
    return normalise_dataset(rows, {"jurisdiction_code": "RW", "residency_override": "rw"})
