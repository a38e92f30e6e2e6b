import json

import pytest

from flowinsights.insight_engine import generate_insights
from flowinsights.parsers import (
    InsightInputError,
    load_collections,
    load_export,
    parse_collection_file,
    records_from_payload,
)
from flowinsights.tests.factories import DAY, T0


def _payload():
    return {
        "workflows": [
            {"id": "wf-1", "name": "Onboard User", "link": "https://x/wf-1", "type": "STANDARD",
             "humanSecondsSaved": 300},
            {"id": "wf-2", "name": "Picker", "type": "OPTION_GENERATOR"},
            {"name": "no id"},
        ],
        "executions": [
            {
                "id": "ex-1",
                "status": "SUCCEEDED",
                "createdAt": str(T0),
                "updatedAt": str(T0 + 2000),
                "tasksUsed": 4,
                "workflow": {"id": "wf-1", "name": "Onboard User", "link": "https://x/wf-1", "type": "STANDARD"},
                "triggerInfo": {"type": "Form Submission", "formId": "form-1"},
            },
            {"id": "ex-2", "status": "failed", "createdAt": T0 + DAY, "workflow": {"id": "wf-1"},
             "form": {"id": "form-2"}},
        ],
        "forms": [{"id": "form-1", "name": "Intake", "link": "https://x/form-1"}],
    }


def test_records_from_payload_maps_wire_fields():
    workflows, executions, forms = records_from_payload(_payload())

    assert [w.id for w in workflows] == ["wf-1", "wf-2"]
    assert workflows[0].human_seconds_saved == 300
    assert workflows[1].type == "OPTION_GENERATOR"

    first = executions[0]
    assert first.workflow.id == "wf-1"
    assert first.workflow.type == "STANDARD"
    assert first.trigger_type == "Form Submission"
    assert first.trigger_form_id == "form-1"
    assert first.tasks_used == 4
    assert executions[1].form_id == "form-2"
    assert executions[1].updated_at is None

    assert forms[0].name == "Intake"


def test_missing_collections_are_empty():
    assert records_from_payload({}) == ([], [], [])


@pytest.mark.parametrize("payload", [[], "text", {"executions": {"id": 1}}, {"forms": ["x"]}])
def test_malformed_payload_raises(payload):
    with pytest.raises(InsightInputError):
        records_from_payload(payload)


def test_csv_with_dotted_columns(tmp_path):
    (tmp_path / "workflows.csv").write_text("id,name,type,humanSecondsSaved\nwf-1,Sync,STANDARD,\n")
    (tmp_path / "executions.csv").write_text(
        "id,status,createdAt,updatedAt,tasksUsed,workflow.id,workflow.name\n"
        f"ex-1,FAILED,{T0},{T0 + 1000},7,wf-1,Sync\n"
    )

    workflows, executions, forms = load_collections(tmp_path / "workflows.csv", tmp_path / "executions.csv")

    assert workflows[0].human_seconds_saved is None
    assert executions[0].workflow.id == "wf-1"
    assert executions[0].created_at == str(T0)
    assert forms == []

    insights = generate_insights(workflows, executions, forms)
    assert insights.missing[0].execution_count == 1


def test_jsonl_collection():
    content = b'{"id": "form-1", "name": "Intake"}\n{"id": "form-2", "name": "Exit"}\n'
    rows = parse_collection_file(content, "forms.jsonl")
    assert [r["id"] for r in rows] == ["form-1", "form-2"]


def test_unsupported_extension():
    with pytest.raises(InsightInputError, match="Unsupported file type"):
        parse_collection_file(b"", "executions.xml")


def test_load_export_round_trips_payload(tmp_path):
    path = tmp_path / "export.json"
    path.write_text(json.dumps(_payload()))

    workflows, executions, forms = load_export(path)

    assert len(workflows) == 2
    assert len(executions) == 2
    assert len(forms) == 1


def test_load_export_rejects_non_json(tmp_path):
    with pytest.raises(InsightInputError):
        load_export(tmp_path / "export.csv")
