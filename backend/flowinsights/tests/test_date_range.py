from flowinsights.date_range import get_date_range, has_sufficient_history
from flowinsights.insight_models import DateRange
from flowinsights.tests.factories import DAY, HOUR, T0


def test_empty_executions_give_na_range():
    assert get_date_range([]).to_dict() == {"start": "N/A", "end": "N/A", "days": 0}


def test_single_execution_is_zero_days(make_workflow, make_execution):
    result = get_date_range([make_execution(make_workflow(), created_at=T0)])
    assert result == DateRange(start="11/14/2023", end="11/14/2023", days=0)


def test_partial_days_round_up(make_workflow, make_execution):
    wf = make_workflow()
    execs = [make_execution(wf, created_at=T0 + 36 * HOUR), make_execution(wf, created_at=T0)]

    result = get_date_range(execs)

    assert result.start == "11/14/2023"
    assert result.end == "11/16/2023"
    assert result.days == 2


def test_unparsable_timestamps_are_skipped(make_workflow, make_execution):
    wf = make_workflow()
    execs = [
        make_execution(wf, created_at="not-a-time", runtime_s=None),
        make_execution(wf, created_at=str(T0), runtime_s=None),
        make_execution(wf, created_at=T0 + 10 * DAY),
    ]
    assert get_date_range(execs).days == 10


def test_only_unparsable_timestamps_give_na_range(make_workflow, make_execution):
    execs = [make_execution(make_workflow(), created_at=None, runtime_s=None)]
    assert get_date_range(execs).start == "N/A"


def test_sufficient_history_threshold():
    assert has_sufficient_history(DateRange("1/1/2024", "1/8/2024", 7))
    assert not has_sufficient_history(DateRange("1/1/2024", "1/7/2024", 6))


def test_out_of_range_timestamps_are_skipped(make_workflow, make_execution):
    wf = make_workflow()
    execs = [
        make_execution(wf, created_at=1e20, runtime_s=None),
        make_execution(wf, created_at="99999999999999999", runtime_s=None),
        make_execution(wf, created_at=T0),
        make_execution(wf, created_at=T0 + 3 * DAY),
    ]

    result = get_date_range(execs)

    assert result == DateRange(start="11/14/2023", end="11/17/2023", days=3)


def test_only_out_of_range_timestamps_give_na_range(make_workflow, make_execution):
    execs = [make_execution(make_workflow(), created_at=1e20, runtime_s=None)]
    assert get_date_range(execs) == DateRange("N/A", "N/A", 0)
