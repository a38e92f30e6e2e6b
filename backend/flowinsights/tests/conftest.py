import pytest

from cache.cache import cache_clear
from flowinsights.insight_models import ExecutionRecord, FormRecord, WorkflowRecord, WorkflowRef
from flowinsights.tests.factories import DAY, T0


@pytest.fixture
def make_workflow():
    def _make(wf_id="wf-1", name=None, wf_type="STANDARD", human_seconds_saved=60, link=None):
        return WorkflowRecord(
            id=wf_id,
            name=name or f"Workflow {wf_id}",
            link=link or f"https://app.example.com/workflows/{wf_id}",
            type=wf_type,
            human_seconds_saved=human_seconds_saved,
        )
    return _make


@pytest.fixture
def make_execution():
    counter = {"n": 0}

    def _make(workflow, created_at=T0, status="succeeded", tasks_used=1, runtime_s=5,
              trigger_type=None, trigger_form_id=None, form_id=None):
        counter["n"] += 1
        updated_at = None if created_at is None or runtime_s is None else created_at + runtime_s * 1000
        return ExecutionRecord(
            id=f"ex-{counter['n']}",
            workflow=WorkflowRef(id=workflow.id, name=workflow.name, link=workflow.link, type=workflow.type),
            status=status,
            created_at=created_at,
            updated_at=updated_at,
            tasks_used=tasks_used,
            trigger_type=trigger_type,
            trigger_form_id=trigger_form_id,
            form_id=form_id,
        )
    return _make


@pytest.fixture
def make_form():
    def _make(form_id="form-1", name=None):
        return FormRecord(id=form_id, name=name or f"Form {form_id}", link=f"https://app.example.com/forms/{form_id}")
    return _make


@pytest.fixture
def run_series(make_execution):
    """Executions one per spacing interval, oldest first, with per-run tasks and statuses."""
    def _make(workflow, tasks, statuses=None, spacing=DAY, start=T0):
        statuses = statuses or ["succeeded"] * len(tasks)
        return [
            make_execution(workflow, created_at=start + i * spacing, status=s, tasks_used=n)
            for i, (n, s) in enumerate(zip(tasks, statuses))
        ]
    return _make


@pytest.fixture(autouse=True)
def _clear_cache():
    cache_clear()
    yield
    cache_clear()
