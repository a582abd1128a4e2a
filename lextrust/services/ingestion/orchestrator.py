"""Ingestion orchestrator.

Drives one run per adapter: allowlist and validation checks, download,
hashing and identifier derivation, change detection, persistence, storage
and vector-store sync, quarantine on failure and domain health bookkeeping.
Every candidate leaves a durable trace, either a Source or a quarantine row.
"""

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Hashable, List, Optional, Sequence, Union
from uuid import UUID

from dateutil import parser as dateparser
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from lextrust.core.config import settings
from lextrust.core.exceptions import ConfigurationError, VectorStoreError
from lextrust.repositories.authority_domain_repository import AuthorityDomainRepository
from lextrust.repositories.case_treatment_repository import CaseTreatmentRepository
from lextrust.repositories.document_repository import DocumentRepository
from lextrust.repositories.quarantine_repository import QuarantineRepository
from lextrust.repositories.source_repository import SourceRepository
from lextrust.schemas.ingestion import IngestionSummary, NormalizedDocument
from lextrust.services.ingestion.adapters import BaseAdapter, get_adapter, list_adapters
from lextrust.services.ingestion.allowlist import DomainAllowlist, extract_host
from lextrust.services.ingestion.case_treatment import CaseTreatmentEnricher
from lextrust.services.ingestion.content import (
    build_akoma_body,
    build_akoma_payload,
    extension_for_mime,
    extract_plain_text,
    sha256_hex,
    slugify,
    storage_path,
)
from lextrust.services.ingestion.downloader import DocumentDownloader
from lextrust.services.ingestion.identifiers import resolve_identifiers, resolve_residency_zone
from lextrust.services.notifier import Notifier, build_notifier
from lextrust.services.scheduler import TaskScheduler
from lextrust.services.storage_service import StorageService
from lextrust.services.vector_store import VectorStoreClient
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)

BINDING_LANGUAGE_REQUIRED = frozenset(
    {"FR", "BE", "LU", "MC", "CH", "CA-QC", "CA", "OHADA", "MA", "TN", "DZ", "RW", "EU"}
)


class QuarantineReason(str, Enum):
    INVALID_URL = "invalid_url"
    DOMAIN_NOT_ALLOWLISTED = "domain_not_allowlisted"
    INVALID_DOCUMENT = "invalid_document"
    BINDING_LANGUAGE_MISSING = "binding_language_missing"
    INGESTION_FAILURE = "ingestion_failure"


class Outcome(str, Enum):
    INSERTED = "inserted"
    SKIPPED = "skipped"
    FAILED = "failed"


class KeyedLock:
    """One asyncio lock per key; entries are dropped once released."""

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._waiters: Dict[Hashable, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, key: Hashable):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                self._locks.pop(key, None)
                self._waiters.pop(key, None)


def _normalise_last_modified(value: Optional[str]) -> Optional[str]:
    """ISO-8601 form of an HTTP ``Last-Modified`` value, raw if unparsable."""
    if not value:
        return None
    try:
        return dateparser.parse(value).isoformat()
    except (ValueError, OverflowError):
        return value


def _coerce_org_id(org_id: Union[str, UUID, None]) -> UUID:
    if not org_id:
        raise ConfigurationError("An organization id is required for ingestion")
    try:
        return org_id if isinstance(org_id, UUID) else UUID(str(org_id))
    except ValueError as e:
        raise ConfigurationError(f"Invalid organization id: {org_id}", original_error=e)


class IngestionOrchestrator:
    """Ingests adapter output for one organization.

    Persistence for a given (org, canonical URL) is serialized with a keyed
    lock on top of the database upsert, and each candidate commits or rolls
    back on its own.
    """

    # shared across instances so concurrent runs in one process serialize
    _locks = KeyedLock()

    def __init__(
        self,
        session: AsyncSession,
        storage: Optional[StorageService] = None,
        vector_store: Optional[VectorStoreClient] = None,
        downloader: Optional[DocumentDownloader] = None,
        notifier: Optional[Notifier] = None,
        scheduler: Optional[TaskScheduler] = None,
        source_repository: Optional[SourceRepository] = None,
        document_repository: Optional[DocumentRepository] = None,
        domain_repository: Optional[AuthorityDomainRepository] = None,
        quarantine_repository: Optional[QuarantineRepository] = None,
        enricher: Optional[CaseTreatmentEnricher] = None,
        bucket: Optional[str] = None,
    ):
        """Initialize the orchestrator.

        Args:
            session: Session owning every transaction of the run.
            storage: Storage collaborator; built from settings when omitted,
                which raises ConfigurationError if credentials are missing.
            vector_store: Vector store collaborator.
            downloader: Document downloader.
            notifier: Alert sink for failed runs and quarantines.
            scheduler: Run bookkeeping.
            source_repository: Repository for Sources.
            document_repository: Repository for stored Documents.
            domain_repository: Repository for AuthorityDomain health.
            quarantine_repository: Repository for quarantine entries.
            enricher: Case-treatment enricher.
            bucket: Storage bucket, ``authorities`` by default.
        """
        self.session = session
        self.storage = storage or StorageService()
        self.vector_store = vector_store or VectorStoreClient()
        self.downloader = downloader or DocumentDownloader()
        self.notifier = notifier or build_notifier()
        self.scheduler = scheduler or TaskScheduler(session)
        self.sources = source_repository or SourceRepository(session)
        self.documents = document_repository or DocumentRepository(session)
        self.domains = domain_repository or AuthorityDomainRepository(session)
        self.quarantine = quarantine_repository or QuarantineRepository(session)
        self.enricher = enricher or CaseTreatmentEnricher(self.sources, CaseTreatmentRepository(session))
        self.bucket = bucket or settings.supabase.authorities_bucket
        self.allowlist = DomainAllowlist.official()

    async def run_all(
        self, org_id: Union[str, UUID], adapter_ids: Optional[Sequence[str]] = None
    ) -> Dict[str, IngestionSummary]:
        """Run adapters sequentially and return a summary per adapter id.

        Raises:
            ConfigurationError: If the org id is missing or an adapter id is
                unknown. Raised before any candidate is processed.
        """
        org_uuid = _coerce_org_id(org_id)
        if adapter_ids:
            adapters: List[BaseAdapter] = []
            for adapter_id in adapter_ids:
                adapter = get_adapter(adapter_id)
                if adapter is None:
                    raise ConfigurationError(f"Unknown adapter: {adapter_id}")
                adapters.append(adapter)
        else:
            adapters = list_adapters()

        results: Dict[str, IngestionSummary] = {}
        for adapter in adapters:
            results[adapter.adapter_id] = await self.run_adapter(adapter, org_uuid)
        return results

    async def run_adapter(self, adapter: BaseAdapter, org_id: Union[str, UUID]) -> IngestionSummary:
        """Fetch and ingest one adapter's candidates inside a tracked run.

        An exception from the adapter itself yields ``{0, 0, 1}`` and a run
        with status ``failed``; otherwise the run is ``completed``.
        """
        org_uuid = _coerce_org_id(org_id)
        adapter_id = adapter.adapter_id

        run_id = await self.scheduler.start_ingestion_run(org_uuid, adapter_id)
        await self.session.commit()
        if run_id is None:
            LOGGER.warning(f"Ingestion run for {adapter_id} is not tracked", extra={"org_id": str(org_uuid)})

        try:
            documents = await adapter.fetch_documents()
        except Exception as e:
            LOGGER.error(f"Adapter {adapter_id} failed: {str(e)}", exc_info=True)
            summary = IngestionSummary(inserted=0, skipped=0, failures=1)
            await self.scheduler.complete_ingestion_run(run_id, "failed", summary, str(e))
            await self.session.commit()
            await self.notifier.notify(
                "ingestion.run_failed",
                {"org_id": str(org_uuid), "adapter_id": adapter_id, "error": str(e)},
            )
            return summary

        summary = await self.ingest_documents(adapter_id, org_uuid, documents)
        await self.scheduler.complete_ingestion_run(run_id, "completed", summary)
        await self.session.commit()

        LOGGER.info(
            f"Ingestion run {adapter_id} finished",
            extra={"org_id": str(org_uuid), **summary.model_dump()},
        )
        if summary.failures:
            await self.notifier.notify(
                "ingestion.run_completed_with_failures",
                {"org_id": str(org_uuid), "adapter_id": adapter_id, **summary.model_dump()},
            )
        return summary

    async def ingest_documents(
        self, adapter_id: str, org_id: UUID, documents: Sequence[NormalizedDocument]
    ) -> IngestionSummary:
        """Process candidates one by one; a failing candidate never aborts the batch."""
        await self._refresh_allowlist()
        summary = IngestionSummary()
        for doc in documents:
            outcome = await self.ingest_document(adapter_id, org_id, doc)
            if outcome == Outcome.INSERTED:
                summary.inserted += 1
            elif outcome == Outcome.SKIPPED:
                summary.skipped += 1
            else:
                summary.failures += 1
        return summary

    async def ingest_document(self, adapter_id: str, org_id: UUID, doc: NormalizedDocument) -> Outcome:
        host = extract_host(doc.canonical_url)
        if host is None:
            await self._quarantine(adapter_id, org_id, doc, QuarantineReason.INVALID_URL)
            return Outcome.FAILED

        if not self.allowlist.is_allowlisted(host):
            await self._quarantine(adapter_id, org_id, doc, QuarantineReason.DOMAIN_NOT_ALLOWLISTED, {"host": host})
            return Outcome.SKIPPED

        if not doc.title or not doc.download_url:
            missing = [name for name in ("title", "download_url") if not getattr(doc, name)]
            await self._quarantine(adapter_id, org_id, doc, QuarantineReason.INVALID_DOCUMENT, {"missing": missing})
            return Outcome.FAILED

        if doc.jurisdiction_code in BINDING_LANGUAGE_REQUIRED and not doc.binding_language:
            await self._quarantine(adapter_id, org_id, doc, QuarantineReason.BINDING_LANGUAGE_MISSING)
            return Outcome.SKIPPED

        async with self._locks.hold((org_id, doc.dedup_key)):
            try:
                outcome = await self._persist(org_id, doc, host)
                await self.session.commit()
                return outcome
            except Exception as e:
                await self.session.rollback()
                LOGGER.error(
                    f"Ingestion failed for {doc.canonical_url}: {str(e)}",
                    exc_info=True,
                    extra={"org_id": str(org_id), "adapter_id": adapter_id},
                )
                await self._record_failure(adapter_id, org_id, doc, host, e)
                return Outcome.FAILED

    async def _persist(self, org_id: UUID, doc: NormalizedDocument, host: str) -> Outcome:
        download = await self.downloader.download(doc)
        payload = download.payload
        capture_sha256 = sha256_hex(payload)
        plain_text = extract_plain_text(payload, doc.mime_type)
        body = build_akoma_body(plain_text)

        etag = download.etag or doc.etag
        last_modified = _normalise_last_modified(download.last_modified or doc.last_modified)
        residency_zone = resolve_residency_zone(doc.jurisdiction_code, doc.residency_override)
        eli, ecli = resolve_identifiers(doc.canonical_url, plain_text or doc.title, doc.eli, doc.ecli)

        existing = await self.sources.get_by_org_url(org_id, doc.canonical_url)
        if existing is not None:
            same_hash = existing.capture_sha256 == capture_sha256
            same_etag = bool(etag) and existing.http_etag == etag
            if same_hash or same_etag:
                await self.sources.refresh_unchanged(
                    existing.id,
                    residency_zone=residency_zone,
                    http_etag=etag or existing.http_etag,
                    last_modified=last_modified or existing.last_modified,
                )
                await self.domains.record_success(host, doc.jurisdiction_code)
                return Outcome.SKIPPED

        source = await self.sources.upsert(
            {
                "org_id": org_id,
                "source_url": doc.canonical_url,
                "jurisdiction_code": doc.jurisdiction_code,
                "source_type": doc.source_type.value,
                "title": doc.title,
                "publisher": doc.publisher,
                "binding_lang": doc.binding_language,
                "consolidated": doc.consolidated,
                "adopted_date": doc.adoption_date,
                "effective_date": doc.effective_date,
                "version_label": doc.version_label,
                "language_note": doc.language_note,
                "capture_sha256": capture_sha256,
                "http_etag": etag,
                "last_modified": last_modified,
                "residency_zone": residency_zone,
                "link_last_status": "ok",
                "link_last_error": None,
                "link_last_checked": datetime.now(timezone.utc),
                "eli": eli,
                "ecli": ecli,
                "akoma_ntoso": build_akoma_payload(doc, eli, ecli, body),
            }
        )

        path = storage_path(str(org_id), residency_zone, doc.title, doc.mime_type)
        await self.storage.upload_bytes(payload, self.bucket, path, doc.mime_type)

        filename = f"{slugify(doc.title) or 'document'}.{extension_for_mime(doc.mime_type)}"
        document = await self.documents.upsert(
            {
                "org_id": org_id,
                "source_id": source.id,
                "name": filename,
                "bucket_id": self.bucket,
                "storage_path": path,
                "mime_type": doc.mime_type,
                "bytes": len(payload),
                "residency_zone": residency_zone,
            }
        )
        await self._sync_vector_store(document.id, payload, filename, doc.mime_type)

        await self.domains.record_success(host, doc.jurisdiction_code)
        await self._enrich_case_treatments(org_id, doc, source.id, plain_text)
        return Outcome.INSERTED

    async def _sync_vector_store(self, document_id: UUID, payload: bytes, filename: str, mime_type: str) -> None:
        if not self.vector_store.is_configured:
            return
        try:
            result = await self.vector_store.sync(payload, filename, mime_type)
        except VectorStoreError as e:
            LOGGER.warning(f"Vector store sync failed for {filename}: {str(e)}")
            await self.documents.mark_vector_sync(document_id, "failed", error=str(e))
            return
        except Exception as e:
            LOGGER.error(f"Unexpected vector store error for {filename}: {str(e)}", exc_info=True)
            await self.documents.mark_vector_sync(document_id, "failed", error=str(e))
            return
        await self.documents.mark_vector_sync(document_id, "uploaded", file_id=result.get("file_id"))

    async def _enrich_case_treatments(
        self, org_id: UUID, doc: NormalizedDocument, source_id: UUID, plain_text: str
    ) -> None:
        try:
            async with self.session.begin_nested():
                await self.enricher.enrich(org_id, doc, source_id, plain_text)
        except Exception as e:
            LOGGER.warning(
                f"Case treatment enrichment failed for {doc.canonical_url}: {str(e)}",
                extra={"org_id": str(org_id)},
            )

    async def _record_failure(
        self, adapter_id: str, org_id: UUID, doc: NormalizedDocument, host: str, error: Exception
    ) -> None:
        message = str(error) or error.__class__.__name__
        try:
            existing = await self.sources.get_by_org_url(org_id, doc.canonical_url)
            if existing is not None:
                await self.sources.record_link_failure(existing.id, message)
            await self.domains.record_failure(host, doc.jurisdiction_code)
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.error(f"Failed to record link health for {doc.canonical_url}: {str(e)}", exc_info=True)
        await self._quarantine(adapter_id, org_id, doc, QuarantineReason.INGESTION_FAILURE, {"error": message})

    async def _quarantine(
        self,
        adapter_id: str,
        org_id: UUID,
        doc: NormalizedDocument,
        reason: QuarantineReason,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        details = {
            "title": doc.title,
            "jurisdiction": doc.jurisdiction_code,
            "source_type": doc.source_type.value,
            "binding_language": doc.binding_language,
            "consolidated": doc.consolidated,
            "language_note": doc.language_note,
            "host": extract_host(doc.canonical_url),
            **(extra or {}),
        }
        source_url = doc.canonical_url or doc.download_url
        try:
            await self.quarantine.upsert(
                org_id=org_id,
                source_url=source_url,
                reason=reason.value,
                details=details,
                adapter_id=adapter_id,
                canonical_url=doc.canonical_url or None,
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.error(f"Failed to quarantine {source_url} ({reason.value}): {str(e)}", exc_info=True)
            return

        LOGGER.info(
            f"Quarantined {source_url}: {reason.value}",
            extra={"org_id": str(org_id), "adapter_id": adapter_id, "reason": reason.value},
        )
        await self.notifier.notify(
            "ingestion.quarantined",
            {"org_id": str(org_id), "adapter_id": adapter_id, "source_url": source_url, "reason": reason.value},
        )

    async def _refresh_allowlist(self) -> None:
        """Merge active ``authority_domains`` hosts into the static registry."""
        try:
            extra_hosts = await self.domains.list_active_hosts()
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.warning(f"Using static allowlist, authority_domains unavailable: {str(e)}")
            return
        self.allowlist = DomainAllowlist.official(extra_hosts)
