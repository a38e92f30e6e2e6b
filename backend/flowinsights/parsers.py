"""
Record loader: turns dashboard payloads and export files into typed records.

Payloads follow the dashboard wire shape (camelCase, nested ``workflow`` /
``triggerInfo`` / ``form`` objects). Tabular exports (CSV, JSON, JSONL) are read
with pandas; dotted column names such as ``workflow.id`` stand in for nesting.
"""
from __future__ import annotations

import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from flowinsights.insight_models import (
    ExecutionRecord,
    FormRecord,
    WorkflowRecord,
    WorkflowRef,
)

logger = logging.getLogger(__name__)

COLLECTIONS = ("workflows", "executions", "forms")

# Extension → parser mapping
_EXT_MAP = {
    ".csv": "csv",
    ".tsv": "csv",
    ".json": "json",
    ".jsonl": "jsonl",
    ".ndjson": "jsonl",
}

SUPPORTED_EXTENSIONS = set(_EXT_MAP.keys())

Records = Tuple[List[WorkflowRecord], List[ExecutionRecord], List[FormRecord]]


class InsightInputError(ValueError):
    """Raised when a payload or export file cannot be turned into records."""


# ── Field access ────────────────────────────────────────────────────────

def _missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _get(row: Dict[str, Any], *path: str) -> Any:
    """Nested lookup that also accepts flattened ``a.b`` keys."""
    flat = ".".join(path)
    if flat in row and not _missing(row[flat]):
        return row[flat]
    value: Any = row
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return None if _missing(value) else value


def _as_id(value: Any) -> Optional[str]:
    if _missing(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _as_text(value: Any) -> Optional[str]:
    return None if _missing(value) else str(value)


# ── Record builders ─────────────────────────────────────────────────────

def workflow_from_dict(row: Dict[str, Any]) -> Optional[WorkflowRecord]:
    wf_id = _as_id(_get(row, "id"))
    if wf_id is None:
        return None
    return WorkflowRecord(
        id=wf_id,
        name=_as_text(_get(row, "name")) or wf_id,
        link=_as_text(_get(row, "link")),
        type=_as_text(_get(row, "type")),
        human_seconds_saved=_get(row, "humanSecondsSaved"),
    )


def execution_from_dict(row: Dict[str, Any]) -> ExecutionRecord:
    return ExecutionRecord(
        id=_as_id(_get(row, "id")) or "",
        workflow=WorkflowRef(
            id=_as_id(_get(row, "workflow", "id")),
            name=_as_text(_get(row, "workflow", "name")),
            link=_as_text(_get(row, "workflow", "link")),
            type=_as_text(_get(row, "workflow", "type")),
        ),
        status=_as_text(_get(row, "status")),
        created_at=_get(row, "createdAt"),
        updated_at=_get(row, "updatedAt"),
        tasks_used=_get(row, "tasksUsed"),
        trigger_type=_as_text(_get(row, "triggerInfo", "type")),
        trigger_form_id=_as_id(_get(row, "triggerInfo", "formId")),
        form_id=_as_id(_get(row, "form", "id")),
    )


def form_from_dict(row: Dict[str, Any]) -> Optional[FormRecord]:
    form_id = _as_id(_get(row, "id"))
    if form_id is None:
        return None
    return FormRecord(
        id=form_id,
        name=_as_text(_get(row, "name")) or form_id,
        link=_as_text(_get(row, "link")),
    )


def _rows(payload: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    rows = payload.get(key) or []
    if not isinstance(rows, list):
        raise InsightInputError(f"'{key}' must be a list")
    bad = [i for i, r in enumerate(rows) if not isinstance(r, dict)]
    if bad:
        raise InsightInputError(f"'{key}' entries must be objects (bad indexes: {bad[:5]})")
    return rows


def records_from_payload(payload: Any) -> Records:
    """
    Builds typed records from a ``{workflows, executions, forms}`` payload.

    Records without an id are skipped (workflows, forms); missing collections
    are treated as empty.
    """
    if not isinstance(payload, dict):
        raise InsightInputError("Payload must be an object with workflows, executions and forms")

    workflow_rows = _rows(payload, "workflows")
    form_rows = _rows(payload, "forms")

    workflows = [w for w in map(workflow_from_dict, workflow_rows) if w]
    executions = [execution_from_dict(r) for r in _rows(payload, "executions")]
    forms = [f for f in map(form_from_dict, form_rows) if f]

    skipped = len(workflow_rows) - len(workflows) + len(form_rows) - len(forms)
    if skipped:
        logger.debug(f"Skipped {skipped} workflow/form records without an id")
    return workflows, executions, forms


# ── Files ───────────────────────────────────────────────────────────────

def _parse_csv(buf: io.BytesIO) -> pd.DataFrame:
    sample = buf.read(4096).decode("utf-8", errors="replace")
    buf.seek(0)
    sep = "\t" if "\t" in sample and "," not in sample else ","
    # Strings throughout; numeric parsing happens per field downstream
    return pd.read_csv(buf, sep=sep, dtype=str, keep_default_na=True)


def _parse_json(buf: io.BytesIO) -> pd.DataFrame:
    obj = json.loads(buf.read().decode("utf-8"))
    if isinstance(obj, dict):
        obj = next((v for v in obj.values() if isinstance(v, list)), [obj])
    return pd.json_normalize(obj)


def _parse_jsonl(buf: io.BytesIO) -> pd.DataFrame:
    return pd.read_json(buf, lines=True, dtype=False)


_PARSERS = {
    "csv": _parse_csv,
    "json": _parse_json,
    "jsonl": _parse_jsonl,
}


def parse_collection_file(content: bytes, filename: str) -> List[Dict[str, Any]]:
    """
    Parse one exported collection (e.g. ``executions.csv``) into row dicts.

    Raises InsightInputError if the file type is unsupported or parsing fails.
    """
    ext = Path(filename).suffix.lower()
    fmt = _EXT_MAP.get(ext)
    if not fmt:
        raise InsightInputError(
            f"Unsupported file type '{ext}'. "
            f"Supported: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )

    try:
        df = _PARSERS[fmt](io.BytesIO(content))
    except Exception as e:
        raise InsightInputError(f"Failed to parse {filename}: {e}") from e

    df = df.astype(object).where(pd.notna(df), None)
    logger.info(f"Parsed {filename}: {len(df)} rows × {len(df.columns)} cols")
    return df.to_dict(orient="records")


def load_export(path: Path) -> Records:
    """Loads a single JSON export holding all three collections."""
    path = Path(path)
    if path.suffix.lower() != ".json":
        raise InsightInputError(f"Export must be a .json file, got '{path.name}'")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise InsightInputError(f"Failed to read {path}: {e}") from e
    return records_from_payload(payload)


def load_collections(
    workflows_path: Path,
    executions_path: Path,
    forms_path: Optional[Path] = None,
) -> Records:
    """Loads one file per collection (CSV / JSON / JSONL in any mix)."""
    payload: Dict[str, Any] = {}
    for key, path in zip(COLLECTIONS, (workflows_path, executions_path, forms_path)):
        if path is None:
            payload[key] = []
            continue
        path = Path(path)
        try:
            content = path.read_bytes()
        except OSError as e:
            raise InsightInputError(f"Failed to read {path}: {e}") from e
        payload[key] = parse_collection_file(content, path.name)
    return records_from_payload(payload)
