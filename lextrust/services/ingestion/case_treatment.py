"""Case-law treatment extraction.

Scans the text of an ingested decision for references to other decisions,
infers how each one is treated from the surrounding sentence, and records a
weighted edge between the citing and the cited source.
"""

import re
from datetime import date
from typing import List, Optional, Tuple
from uuid import UUID

from lextrust.database.models import Source
from lextrust.repositories.case_treatment_repository import CaseTreatmentRepository
from lextrust.repositories.source_repository import SourceRepository
from lextrust.schemas.ingestion import NormalizedDocument, SourceType, TreatmentHint, TreatmentType
from lextrust.utils.logging import get_logger

LOGGER = get_logger(__name__)

SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
ABBREVIATION_END = re.compile(r"(?:\bAff\.|\bArt\.|\bN°\.|\bNo\.)$", re.IGNORECASE)
ECLI_REFERENCE = re.compile(r"ECLI:[A-Z0-9:_.-]+", re.IGNORECASE)
GENERIC_REFERENCE = re.compile(r"\b(?:aff\.|arr[êée]t|d[ée]cision|n°)\s*[0-9]{2,4}[/0-9A-Za-z-]*", re.IGNORECASE)
REFERENCE_PREFIX = re.compile(r"^(aff\.|arr[êée]t|d[ée]cision|n°)", re.IGNORECASE)

# first matching row wins
TREATMENT_RULES: Tuple[Tuple[re.Pattern, TreatmentType], ...] = (
    (re.compile(r"casse|annule|infirme|rejette|invalide"), TreatmentType.OVERRULED),
    (re.compile(r"distingu|écarte|ecarte|nuance|limite"), TreatmentType.DISTINGUISHED),
    (re.compile(r"critique|conteste|met en cause"), TreatmentType.CRITICIZED),
    (re.compile(r"questionne|s'interroge|renvoie"), TreatmentType.QUESTIONED),
    (re.compile(r"confirme|applique|suit|entérine|entériné|adopte"), TreatmentType.FOLLOWED),
)

TREATMENT_WEIGHTS = {
    TreatmentType.OVERRULED: 1.0,
    TreatmentType.CRITICIZED: 0.9,
    TreatmentType.FOLLOWED: 0.85,
    TreatmentType.DISTINGUISHED: 0.7,
    TreatmentType.QUESTIONED: 0.65,
    TreatmentType.APPLIED: 0.75,
}


def split_sentences(text: str) -> List[str]:
    """Split on sentence punctuation without breaking after Aff./Art./N°./No."""
    sentences: List[str] = []
    for segment in SENTENCE_SPLIT.split(text):
        trimmed = segment.strip()
        if not trimmed:
            continue
        if sentences and ABBREVIATION_END.search(sentences[-1]):
            sentences[-1] = f"{sentences[-1]} {trimmed}"
            continue
        sentences.append(trimmed)
    return sentences


def detect_treatment(sentence: str) -> TreatmentType:
    lower = sentence.lower()
    for pattern, treatment in TREATMENT_RULES:
        if pattern.search(lower):
            return treatment
    return TreatmentType.APPLIED


def extract_treatment_hints(text: str) -> List[TreatmentHint]:
    """Citation hints found in ``text``, one per distinct reference.

    ECLI tokens in a sentence take precedence; generic ``aff.``/``arrêt``/
    ``décision``/``n°`` references are only used for sentences without one.
    """
    if not text:
        return []

    seen = set()
    hints: List[TreatmentHint] = []
    for sentence in split_sentences(text):
        treatment = detect_treatment(sentence)
        weight = TREATMENT_WEIGHTS[treatment]

        eclis = [token.rstrip(".") for token in ECLI_REFERENCE.findall(sentence)]
        if eclis:
            for reference in eclis:
                if reference in seen:
                    continue
                seen.add(reference)
                hints.append(
                    TreatmentHint(
                        reference=reference,
                        sentence=sentence,
                        treatment=treatment,
                        weight=weight,
                        ecli=reference.upper(),
                    )
                )
            continue

        for match in GENERIC_REFERENCE.finditer(sentence):
            reference = match.group(0).strip()
            if reference and reference not in seen:
                seen.add(reference)
                hints.append(TreatmentHint(reference=reference, sentence=sentence, treatment=treatment, weight=weight))
    return hints


def normalise_case_reference(reference: str) -> str:
    cleaned = REFERENCE_PREFIX.sub("", reference)
    cleaned = re.sub(r"\s+", " ", cleaned)
    return re.sub(r"\.+$", "", cleaned).strip()


class CaseTreatmentEnricher:
    """Resolves treatment hints to known case sources and stores the edges."""

    def __init__(self, source_repository: SourceRepository, treatment_repository: CaseTreatmentRepository):
        self.source_repository = source_repository
        self.treatment_repository = treatment_repository

    async def resolve_reference(
        self, org_id: UUID, jurisdiction_code: str, hint: TreatmentHint
    ) -> Optional[Source]:
        """Find the cited case by ECLI, then title, then version label."""
        if hint.ecli:
            target = await self.source_repository.find_case_by_ecli(org_id, hint.ecli)
            if target is not None:
                return target

        cleaned = normalise_case_reference(hint.reference)
        if not cleaned:
            return None

        target = await self.source_repository.find_case_by_title(org_id, jurisdiction_code, cleaned)
        if target is not None:
            return target
        return await self.source_repository.find_case_by_version_label(org_id, jurisdiction_code, cleaned)

    async def enrich(
        self,
        org_id: UUID,
        doc: NormalizedDocument,
        citing_source_id: UUID,
        plain_text: str,
    ) -> int:
        """Record treatment edges for a freshly ingested decision.

        Args:
            org_id: Organization owning the sources.
            doc: The citing decision.
            citing_source_id: Source id of the citing decision.
            plain_text: Extracted text of the citing decision.

        Returns:
            Number of edges written.
        """
        if doc.source_type != SourceType.CASE or not plain_text:
            return 0

        hints = extract_treatment_hints(plain_text)
        if not hints:
            return 0

        decided_at: Optional[date] = doc.effective_date or doc.adoption_date
        written = 0
        for hint in hints:
            target = await self.resolve_reference(org_id, doc.jurisdiction_code, hint)
            if target is None or target.id == citing_source_id:
                continue
            await self.treatment_repository.upsert_edge(
                org_id=org_id,
                cited_source_id=target.id,
                citing_source_id=citing_source_id,
                treatment=hint.treatment.value,
                weight=hint.weight,
                decided_at=decided_at,
                court_rank=target.court_rank,
            )
            written += 1

        LOGGER.info(
            f"Recorded {written} case treatments for {doc.canonical_url}",
            extra={"org_id": str(org_id), "hints": len(hints)},
        )
        return written
