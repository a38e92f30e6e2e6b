"""
Insight models (dataclasses) shared by the insight engine.
Keeps business structures separate from transport / parsing concerns.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Any, Optional


class ExecutionStatus(str, Enum):
    """Closed status vocabulary; raw status strings are normalized into it."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    OTHER = "other"


class Severity(str, Enum):
    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    # str comparison would order alphabetically; compare by urgency instead
    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_ORDER = [Severity.INFO, Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL]


class InsightCategory(str, Enum):
    ATTENTION = "attention"
    OPTIMIZATION = "optimization"
    ACTIVITY = "activity"
    MISSING = "missing"


# ── Input records ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class WorkflowRef:
    """Owning-workflow reference embedded in an execution."""
    id: Optional[str]
    name: Optional[str] = None
    link: Optional[str] = None
    type: Optional[str] = None


@dataclass(frozen=True)
class ExecutionRecord:
    """One workflow run. Timestamps are epoch milliseconds as received."""
    id: str
    workflow: WorkflowRef
    status: Optional[str] = None
    created_at: Any = None
    updated_at: Any = None
    tasks_used: Optional[float] = None
    trigger_type: Optional[str] = None
    trigger_form_id: Optional[str] = None
    form_id: Optional[str] = None  # linked form, if any


@dataclass(frozen=True)
class WorkflowRecord:
    id: str
    name: str
    link: Optional[str] = None
    type: Optional[str] = None
    human_seconds_saved: Optional[float] = None


@dataclass(frozen=True)
class FormRecord:
    id: str
    name: str
    link: Optional[str] = None


# ── Derived structures ──────────────────────────────────────────────────

@dataclass
class WorkflowAggregate:
    """Per-workflow rollup built by the grouping pass."""
    id: str
    name: str
    link: Optional[str]
    executions: List[ExecutionRecord] = field(default_factory=list)
    succeeded: int = 0
    failed: int = 0
    runtimes: List[float] = field(default_factory=list)  # seconds

    @property
    def total(self) -> int:
        return len(self.executions)


# Attribute name -> dashboard wire key
_WIRE_KEYS = {
    "type": "type",
    "workflow_id": "workflowId",
    "workflow_name": "workflowName",
    "workflow_link": "workflowLink",
    "form_id": "formId",
    "form_name": "formName",
    "form_link": "formLink",
    "title": "title",
    "description": "description",
    "severity": "severity",
    "failure_rate": "failureRate",
    "failed_count": "failedCount",
    "increase_percent": "increasePercent",
    "drop_percent": "dropPercent",
    "avg_runtime": "avgRuntime",
    "execution_count": "executionCount",
}

_ALWAYS_EMIT = {"type", "severity"}


@dataclass
class Insight:
    """Represents a generated finding."""
    type: str
    severity: Severity
    title: str = ""
    description: str = ""
    workflow_id: Optional[str] = None
    workflow_name: Optional[str] = None
    workflow_link: Optional[str] = None
    form_id: Optional[str] = None
    form_name: Optional[str] = None
    form_link: Optional[str] = None
    # Category-specific sort fields
    failure_rate: Optional[float] = None
    failed_count: Optional[int] = None
    increase_percent: Optional[float] = None
    drop_percent: Optional[float] = None
    avg_runtime: Optional[float] = None
    execution_count: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for attr, key in _WIRE_KEYS.items():
            value = getattr(self, attr)
            if attr == "severity":
                value = value.value
            if value is None and attr not in _ALWAYS_EMIT:
                continue
            if attr in ("title", "description") and not value:
                continue
            out[key] = value
        return out


@dataclass
class Insights:
    """Aggregate result of one engine run."""
    attention: List[Insight] = field(default_factory=list)
    optimization: List[Insight] = field(default_factory=list)
    activity: List[Insight] = field(default_factory=list)
    missing: List[Insight] = field(default_factory=list)

    def category(self, name: InsightCategory) -> List[Insight]:
        return getattr(self, InsightCategory(name).value)

    def summary(self) -> Dict[str, int]:
        """Per-category counts, as shown on the summary cards."""
        return {c.value: len(self.category(c)) for c in InsightCategory}

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {c.value: [i.to_dict() for i in self.category(c)] for c in InsightCategory}


@dataclass(frozen=True)
class DateRange:
    start: str
    end: str
    days: int

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end, "days": self.days}
