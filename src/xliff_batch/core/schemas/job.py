from enum import Enum
from typing import Optional, List, TYPE_CHECKING
from datetime import datetime, timezone
from dataclasses import dataclass, field
from pathlib import Path
from pydantic import BaseModel, Field

from .batch import BatchRequest

if TYPE_CHECKING:
    from ..xliff.document import XLIFFDocument, TranslationUnit


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BatchStatus(str, Enum):
    """Remote batch status as reported by the batch API."""
    VALIDATING = "validating"
    IN_PROGRESS = "in_progress"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_BATCH_STATUSES


TERMINAL_BATCH_STATUSES = frozenset({
    BatchStatus.COMPLETED,
    BatchStatus.FAILED,
    BatchStatus.EXPIRED,
    BatchStatus.CANCELLED,
})


class MonitorState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self not in (MonitorState.SUBMITTED, MonitorState.POLLING)


class DocumentStatus(str, Enum):
    TRANSLATED = "translated"
    SKIPPED = "skipped"
    FAILED = "failed"


class BatchInfo(BaseModel):
    """Subset of the remote batch object the pipeline cares about."""
    id: str
    status: BatchStatus
    output_file_id: Optional[str] = None
    error_file_id: Optional[str] = None


class MonitorOutcome(BaseModel):
    state: MonitorState
    text: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BatchHandle:
    """A submitted batch and everything needed to merge its results."""
    batch_id: str
    target_language: str
    document: "XLIFFDocument"
    units: List["TranslationUnit"]
    request: BatchRequest
    staging_path: Path
    submitted_at: datetime = field(default_factory=_utcnow)

    @property
    def path(self) -> Path:
        return self.document.path


class DocumentOutcome(BaseModel):
    path: str
    status: DocumentStatus
    target_language: Optional[str] = None
    reason: Optional[str] = None
    batch_id: Optional[str] = None
    monitor_state: Optional[MonitorState] = None
    requested_count: int = 0
    updated_count: int = 0


class RunReport(BaseModel):
    root: str
    outcomes: List[DocumentOutcome] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None
    duration_seconds: float = 0.0

    def count(self, status: DocumentStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    def mark_completed(self, duration_seconds: float):
        """Stamp the report with the end of the run."""
        self.completed_at = _utcnow()
        self.duration_seconds = duration_seconds

    def format_duration(self) -> str:
        minutes = int(self.duration_seconds // 60)
        seconds = round(self.duration_seconds % 60)
        return f"{minutes} minutes, {seconds} seconds"
