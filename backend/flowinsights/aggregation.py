"""
Aggregation pass: groups executions by owning workflow and provides the
small numeric helpers the detectors share.
"""

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from flowinsights.insight_models import (
    ExecutionRecord,
    ExecutionStatus,
    WorkflowAggregate,
    WorkflowRecord,
)
from flowinsights.thresholds import (
    EXCLUDED_WORKFLOW_TYPE,
    HISTORICAL_SPLIT_RATIO,
    MS_PER_SECOND,
    UNKNOWN_WORKFLOW_NAME,
)

logger = logging.getLogger(__name__)

_SUCCEEDED_STATUSES = {"succeeded", "completed", "success"}
_FAILED_STATUSES = {"failed"}


def normalize_status(status: Optional[str]) -> ExecutionStatus:
    """Case-fold a raw status string into the closed status enum."""
    if not status:
        return ExecutionStatus.OTHER
    folded = str(status).strip().casefold()
    if folded in _SUCCEEDED_STATUSES:
        return ExecutionStatus.SUCCEEDED
    if folded in _FAILED_STATUSES:
        return ExecutionStatus.FAILED
    return ExecutionStatus.OTHER


def parse_number(value: Any) -> Optional[float]:
    """Float from an int, float or numeric string; None if missing or unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(parsed) or math.isinf(parsed):
        return None
    return parsed


def parse_timestamp(value: Any) -> Optional[float]:
    """Epoch milliseconds, or None when the timestamp is absent or unparsable."""
    return parse_number(value)


def tasks_of(execution: ExecutionRecord) -> float:
    value = parse_number(execution.tasks_used)
    return value if value is not None else 0.0


def _sort_key(execution: ExecutionRecord) -> float:
    ts = parse_timestamp(execution.created_at)
    return ts if ts is not None else 0.0


def sort_chronologically(executions: Iterable[ExecutionRecord], newest_first: bool = False) -> List[ExecutionRecord]:
    """Returns a sorted copy; the input sequence is left untouched."""
    return sorted(executions, key=_sort_key, reverse=newest_first)


def split_historical_recent(
    executions: Sequence[ExecutionRecord],
) -> Tuple[List[ExecutionRecord], List[ExecutionRecord]]:
    """
    Splits executions chronologically at the 70th-percentile index.

    Returns:
        (historical, recent), the first 70% and the remaining 30%
    """
    ordered = sort_chronologically(executions)
    split_index = math.floor(len(ordered) * HISTORICAL_SPLIT_RATIO)
    return ordered[:split_index], ordered[split_index:]


def mean_tasks(executions: Sequence[ExecutionRecord]) -> float:
    if not executions:
        return 0.0
    return sum(tasks_of(e) for e in executions) / len(executions)


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def is_excluded_type(workflow_type: Optional[str]) -> bool:
    return workflow_type == EXCLUDED_WORKFLOW_TYPE


def standard_workflows(workflows: Iterable[WorkflowRecord]) -> List[WorkflowRecord]:
    return [w for w in workflows if not is_excluded_type(w.type)]


def standard_executions(executions: Iterable[ExecutionRecord]) -> List[ExecutionRecord]:
    return [e for e in executions if not is_excluded_type(e.workflow.type)]


def group_executions(
    workflows: Sequence[WorkflowRecord],
    executions: Sequence[ExecutionRecord],
) -> Dict[str, WorkflowAggregate]:
    """
    Folds executions into one aggregate per known, non-excluded workflow.

    Executions pointing at unknown workflows (deleted, no access) or at an
    excluded workflow type are dropped.
    """
    valid_ids = {w.id for w in standard_workflows(workflows)}
    stats: Dict[str, WorkflowAggregate] = {}
    dropped = 0

    for execution in standard_executions(executions):
        wf_id = execution.workflow.id
        if not wf_id or wf_id not in valid_ids:
            dropped += 1
            continue

        agg = stats.get(wf_id)
        if agg is None:
            agg = WorkflowAggregate(
                id=wf_id,
                name=execution.workflow.name or UNKNOWN_WORKFLOW_NAME,
                link=execution.workflow.link,
            )
            stats[wf_id] = agg

        agg.executions.append(execution)

        status = normalize_status(execution.status)
        if status is ExecutionStatus.SUCCEEDED:
            agg.succeeded += 1
        elif status is ExecutionStatus.FAILED:
            agg.failed += 1

        created = parse_timestamp(execution.created_at)
        updated = parse_timestamp(execution.updated_at)
        if created is not None and updated is not None:
            agg.runtimes.append((updated - created) / MS_PER_SECOND)

    if dropped:
        logger.debug(f"Dropped {dropped} executions with unknown or excluded workflows")
    return stats
