"""
Date range of an execution window, used for the "insights based on" header
and the short-history warning.
"""

import logging
import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from flowinsights.aggregation import parse_timestamp
from flowinsights.insight_models import DateRange, ExecutionRecord
from flowinsights.thresholds import MIN_HISTORY_DAYS, MS_PER_DAY, MS_PER_SECOND

logger = logging.getLogger(__name__)

EMPTY_RANGE = DateRange(start="N/A", end="N/A", days=0)


def _to_datetime(timestamp_ms: float) -> Optional[datetime]:
    """UTC datetime for epoch millis, or None when outside the representable range."""
    try:
        return datetime.fromtimestamp(timestamp_ms / MS_PER_SECOND, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def format_date(timestamp_ms: float) -> str:
    """Formats epoch millis as M/D/YYYY (UTC, no zero padding)."""
    dt = datetime.fromtimestamp(timestamp_ms / MS_PER_SECOND, tz=timezone.utc)
    return f"{dt.month}/{dt.day}/{dt.year}"


def _usable_timestamps(executions: Sequence[ExecutionRecord]) -> List[float]:
    usable = []
    for execution in executions:
        ts = parse_timestamp(execution.created_at)
        if ts is None:
            continue
        if _to_datetime(ts) is None:
            logger.debug(f"Skipping out-of-range createdAt on execution {execution.id}: {execution.created_at}")
            continue
        usable.append(ts)
    return usable


def get_date_range(executions: Sequence[ExecutionRecord]) -> DateRange:
    timestamps = _usable_timestamps(executions)
    if not timestamps:
        return EMPTY_RANGE

    start, end = min(timestamps), max(timestamps)
    days = math.ceil((end - start) / MS_PER_DAY)
    return DateRange(start=format_date(start), end=format_date(end), days=days)


def has_sufficient_history(date_range: DateRange) -> bool:
    return date_range.days >= MIN_HISTORY_DAYS
