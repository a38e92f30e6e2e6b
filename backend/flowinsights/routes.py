"""
Insight API routes: generate insights and date-range summaries for a
dashboard snapshot posted by the caller.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from flowinsights.date_range import get_date_range, has_sufficient_history
from flowinsights.insight_engine import InsightEngine
from flowinsights.parsers import InsightInputError, execution_from_dict, records_from_payload
from cache.cache import stable_hash, cache_get, cache_set, INSIGHTS_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

router = APIRouter()

ENGINE = InsightEngine()


class InsightGenerateRequest(BaseModel):
    # Entries are checked by the record loader so bad rows map to a 400
    workflows: List[Any] = []
    executions: List[Any] = []
    forms: List[Any] = []


class DateRangeRequest(BaseModel):
    executions: List[Dict[str, Any]] = []


# ── Insights ────────────────────────────────────────────────────────────

@router.post("/insights/generate")
def generate_insights(request: InsightGenerateRequest):
    t0 = time.time()
    if not request.workflows and not request.executions:
        raise HTTPException(status_code=400, detail="No dashboard data available")

    payload = request.model_dump()
    cache_key = stable_hash(payload)
    cached = cache_get("insights", cache_key)
    if cached is not None:
        return {**cached, "cached": True}

    try:
        workflows, executions, forms = records_from_payload(payload)
        date_range = get_date_range(executions)
        insights = ENGINE.generate(workflows, executions, forms)
        response = {
            "dateRange": date_range.to_dict(),
            "sufficientHistory": has_sufficient_history(date_range),
            "summary": insights.summary(),
            "insights": insights.to_dict(),
        }
        cache_set("insights", cache_key, response, INSIGHTS_CACHE_TTL_SECONDS)
        logger.info(
            f"Insights generated for {len(executions)} executions in {int((time.time() - t0) * 1000)}ms"
        )
        return {**response, "cached": False}
    except InsightInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error generating insights: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/insights/date-range")
def insights_date_range(request: DateRangeRequest):
    try:
        executions = [execution_from_dict(row) for row in request.executions]
        return get_date_range(executions).to_dict()
    except Exception as e:
        logger.error(f"Error computing date range: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/health")
def health():
    return {"status": "ok"}
