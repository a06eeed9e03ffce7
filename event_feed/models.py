"""
Data models for event extraction.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Literal line placed between fragments of a batch
CARD_SEPARATOR = "<!-- NEXT EVENT CARD -->"
BATCH_JOINER = f"\n\n{CARD_SEPARATOR}\n\n"

UNTITLED_EVENT = "Untitled Event"


class ExtractionStage(Enum):
    """Which step produced a batch's records."""
    LLM_DIRECT = "llm_direct"
    LLM_REGEX_ARRAY = "llm_regex_array"
    LLM_OBJECT_REPAIR = "llm_object_repair"
    DIRECT_HTML_FALLBACK = "direct_html_fallback"


class PipelineState(Enum):
    """Orchestrator states, in run order."""
    HARVESTING = "harvesting"
    BATCHING = "batching"
    EXTRACTING = "extracting"
    QUALITY_GATE = "quality_gate"
    FALLBACK_SWEEP = "fallback_sweep"
    DEDUPLICATING = "deduplicating"
    PERSISTING = "persisting"
    DONE = "done"
    # Terminal
    HARVEST_FAILED = "harvest_failed"
    NO_EVENTS = "no_events"


@dataclass
class Batch:
    """Consecutive fragments sent to the completion service together."""
    index: int
    fragments: List[str]

    @property
    def markup(self) -> str:
        return BATCH_JOINER.join(self.fragments)

    def __len__(self) -> int:
        return len(self.fragments)


class EventPayload(BaseModel):
    """Loosely-typed event object as decoded from an LLM response."""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    title: str = ""
    date: str = ""
    time: str = ""
    location: str = ""
    description: str = ""
    organizer_name: str = Field(default="", alias="organizerName")
    category: str = ""
    image_url: str = Field(default="", alias="imageUrl")

    @field_validator('*', mode='before')
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value.strip()
        if isinstance(value, (list, tuple)):
            return ", ".join(str(v).strip() for v in value if v is not None)
        return str(value)


@dataclass
class EventRecord:
    """Canonical output unit for one event."""
    title: str
    date: str = ""
    time: str = ""
    location: str = ""
    description: str = ""
    organizer_name: str = ""
    category: str = ""
    image_url: str = ""

    def is_valid(self) -> bool:
        """A record without a title never reaches the feed."""
        return bool(self.title and self.title.strip())

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "date": self.date,
            "time": self.time,
            "location": self.location,
            "description": self.description,
            "organizerName": self.organizer_name,
            "category": self.category,
            "imageUrl": self.image_url,
        }

    @classmethod
    def from_payload(cls, data: Dict[str, Any], default_location: str = "") -> 'EventRecord':
        payload = EventPayload.model_validate(data)
        return cls(
            title=payload.title,
            date=payload.date,
            time=payload.time,
            location=payload.location or default_location,
            description=payload.description,
            organizer_name=payload.organizer_name,
            category=payload.category,
            image_url=payload.image_url,
        )


@dataclass
class ExtractionResult:
    """Records attributed to one batch, tagged with the producing stage."""
    batch_index: int
    fragment_count: int
    records: List[EventRecord] = field(default_factory=list)
    stage: Optional[ExtractionStage] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, batch_index: int, fragment_count: int, error: str) -> 'ExtractionResult':
        return cls(batch_index=batch_index, fragment_count=fragment_count, error=error)


@dataclass
class RunArtifact:
    """Final records and the file they were written to."""
    path: str
    records: List[EventRecord] = field(default_factory=list)

    def to_json_ready(self) -> List[Dict[str, str]]:
        return [record.to_dict() for record in self.records]


@dataclass
class RunReport:
    """Summary of one pipeline execution."""
    state: PipelineState
    url: str = ""
    fragment_count: int = 0
    batch_results: List[ExtractionResult] = field(default_factory=list)
    llm_record_count: int = 0
    used_fallback: bool = False
    artifact: Optional[RunArtifact] = None

    @property
    def failed_batches(self) -> List[ExtractionResult]:
        return [r for r in self.batch_results if not r.success]

    def stage_counts(self) -> Dict[str, int]:
        """Number of batches resolved by each decode stage."""
        counts: Dict[str, int] = {}
        for result in self.batch_results:
            key = result.stage.value if result.stage else ("failed" if result.error else "empty")
            counts[key] = counts.get(key, 0) + 1
        return counts
