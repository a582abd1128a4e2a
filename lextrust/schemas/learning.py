"""Learning loop schemas."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class JobStatus(str, Enum):
    """LearningJob state machine."""

    PENDING = "pending"
    READY = "READY"
    PROCESSING = "processing"
    NEEDS_APPROVAL = "NEEDS_APPROVAL"
    COMPLETED = "completed"
    FAILED = "failed"
    ROLLED_BACK = "ROLLED_BACK"


class PolicyStatus(str, Enum):
    """PolicyVersion state machine."""

    DRAFT = "draft"
    NEEDS_APPROVAL = "NEEDS_APPROVAL"
    APPROVED = "approved"
    ROLLED_BACK = "rolled_back"


class SignalSource(str, Enum):
    AGENT_RUN = "agent_run"
    RUN_CITATION = "run_citation"
    TOOL_TELEMETRY = "tool_telemetry"
    HITL = "hitl"


class LearningMode(str, Enum):
    HOURLY = "hourly"
    NIGHTLY = "nightly"
    REPORTS = "reports"

    @classmethod
    def parse(cls, value: Optional[str]) -> "LearningMode":
        """Unknown or empty modes fall back to hourly."""
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.HOURLY


class SignalRecord(BaseModel):
    """One row destined for learning_signals."""

    org_id: Optional[UUID] = None
    run_id: Optional[UUID] = None
    source: SignalSource
    kind: Optional[str] = None
    payload: Dict[str, Any] = Field(default_factory=dict)


class DiagnosisResult(BaseModel):
    allowlisted_ratio: float
    dead_link_rate: float
    total_citations: int
    jobs_emitted: List[str] = Field(default_factory=list)


class ApplyResult(BaseModel):
    """Outcome of one Policy Applier batch."""

    versions_created: List[UUID] = Field(default_factory=list)
    jobs_moved: int = 0
    orgs_skipped: List[UUID] = Field(default_factory=list)
    jobs_failed: int = 0


class GateResult(BaseModel):
    """Outcome of one Evaluation Gate check."""

    breached: bool
    reasons: List[str] = Field(default_factory=list)
    rolled_back_version_id: Optional[UUID] = None
    rolled_back_version: Optional[int] = None
    jobs_rolled_back: int = 0


class ReportResult(BaseModel):
    org_id: UUID
    drift: Optional[bool] = None
    queue: Optional[bool] = None
    error: Optional[str] = None


class LearningLoopResult(BaseModel):
    """Summary returned by a learning loop invocation."""

    mode: LearningMode
    signals_inserted: int = 0
    processed: List[UUID] = Field(default_factory=list)
    diagnoses: List[DiagnosisResult] = Field(default_factory=list)
    applied: Optional[ApplyResult] = None
    gates: List[GateResult] = Field(default_factory=list)
    reports: List[ReportResult] = Field(default_factory=list)
    finished_at: Optional[datetime] = None
