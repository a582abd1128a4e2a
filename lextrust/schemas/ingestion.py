"""Ingestion schemas.

``NormalizedDocument`` is the shape every adapter emits; the orchestrator
never sees raw feed rows.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class SourceType(str, Enum):
    """Kinds of primary legal sources."""

    STATUTE = "statute"
    CASE = "case"
    GAZETTE = "gazette"
    REGULATION = "regulation"


class NormalizedDocument(BaseModel):
    """A candidate document produced by an adapter."""

    title: str = ""
    jurisdiction_code: str
    source_type: SourceType
    publisher: Optional[str] = None
    canonical_url: str
    download_url: str = ""
    binding_language: Optional[str] = None
    consolidated: bool = False
    adoption_date: Optional[date] = None
    effective_date: Optional[date] = None
    version_label: Optional[str] = None
    language_note: Optional[str] = None
    mime_type: str = "text/html"
    etag: Optional[str] = None
    last_modified: Optional[str] = None
    eli: Optional[str] = None
    ecli: Optional[str] = None
    residency_override: Optional[str] = None

    @field_validator("jurisdiction_code")
    @classmethod
    def upper_jurisdiction(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("title", "canonical_url", "download_url")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @property
    def dedup_key(self) -> str:
        """Canonical URL compared case-insensitively within a batch."""
        return self.canonical_url.lower()


class IngestionSummary(BaseModel):
    """Counts reported for one adapter run."""

    inserted: int = 0
    skipped: int = 0
    failures: int = 0


class DownloadResult(BaseModel):
    """Downloaded body, or the deterministic placeholder on failure."""

    payload: bytes
    etag: Optional[str] = None
    last_modified: Optional[str] = None
    placeholder: bool = False
    error: Optional[str] = Field(default=None, description="Download error when placeholder is True")


class TreatmentType(str, Enum):
    """How a citing decision treats the cited one."""

    OVERRULED = "overruled"
    CRITICIZED = "criticized"
    FOLLOWED = "followed"
    DISTINGUISHED = "distinguished"
    QUESTIONED = "questioned"
    APPLIED = "applied"


class TreatmentHint(BaseModel):
    """A citation found in case text with its inferred treatment."""

    reference: str
    sentence: str = ""
    treatment: TreatmentType
    weight: float
    ecli: Optional[str] = None
