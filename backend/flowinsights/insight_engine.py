"""
Insight Engine: heuristic execution insights for the operations dashboard.

Turns raw workflow / execution / form records into four categories of findings:
attention (failures and anomalies), optimization (slow workflows), activity
(unused resources) and missing (time-savings metadata gaps). Every detector is
an independent pass over the same read-only aggregate mapping.
"""

import logging
from typing import Dict, List, Optional, Sequence

from flowinsights import thresholds as t
from flowinsights.aggregation import (
    group_executions,
    mean,
    mean_tasks,
    normalize_status,
    parse_number,
    parse_timestamp,
    sort_chronologically,
    split_historical_recent,
    standard_executions,
    standard_workflows,
)
from flowinsights.insight_models import (
    ExecutionRecord,
    ExecutionStatus,
    FormRecord,
    Insight,
    Insights,
    Severity,
    WorkflowAggregate,
    WorkflowRecord,
)

logger = logging.getLogger(__name__)

Stats = Dict[str, WorkflowAggregate]


def _span_days(executions: Sequence[ExecutionRecord]) -> float:
    """Elapsed days between first and last execution, at least one day."""
    first = parse_timestamp(executions[0].created_at) or 0.0
    last = parse_timestamp(executions[-1].created_at) or 0.0
    return max(t.MIN_SPAN_DAYS, (last - first) / t.MS_PER_DAY)


def _workflow_insight(wf: WorkflowAggregate, insight_type: str, severity: Severity, **fields) -> Insight:
    return Insight(
        type=insight_type,
        severity=severity,
        workflow_id=wf.id,
        workflow_name=wf.name,
        workflow_link=wf.link,
        **fields,
    )


class InsightEngine:
    """Generates dashboard insights from in-memory execution data."""

    def generate(
        self,
        workflows: Sequence[WorkflowRecord],
        executions: Sequence[ExecutionRecord],
        forms: Sequence[FormRecord],
    ) -> Insights:
        """
        Runs every detector over one snapshot of input data.

        Args:
            workflows: All workflows visible to the dashboard
            executions: Executions already restricted to the date window
            forms: All forms visible to the dashboard

        Returns:
            Insights with the four category lists populated
        """
        stats = group_executions(workflows, executions)
        insights = Insights()

        insights.attention.extend(self.detect_high_failure_rate(stats))
        # Only the failure-rate subset is ordered; later passes append unsorted
        insights.attention.sort(key=lambda i: (-(i.failure_rate or 0), -(i.failed_count or 0)))
        insights.attention.extend(self.detect_consecutive_failures(stats))

        insights.optimization.extend(self.detect_slow_execution(stats))

        insights.attention.extend(self.detect_task_usage_spike(stats))
        aggregate_spike = self.detect_aggregate_task_spike(executions)
        if aggregate_spike:
            insights.attention.append(aggregate_spike)
        insights.attention.extend(self.detect_execution_drop(stats))
        insights.attention.extend(self.detect_task_usage_drop(stats))

        insights.activity.extend(self.detect_unused_resources(stats, workflows, executions, forms))
        insights.missing.extend(self.detect_missing_time_savings(stats, workflows))

        logger.info(
            f"Generated insights: {len(insights.attention)} attention, "
            f"{len(insights.optimization)} optimization, {len(insights.activity)} activity, "
            f"{len(insights.missing)} missing"
        )
        return insights

    # ── Attention ───────────────────────────────────────────────────────

    def detect_high_failure_rate(self, stats: Stats) -> List[Insight]:
        found = []
        for wf in stats.values():
            total = wf.total
            if total < t.FAILURE_RATE_MIN_EXECUTIONS:
                continue

            failure_rate = wf.failed * 100 / total
            if failure_rate < t.FAILURE_RATE_THRESHOLD:
                continue

            severity = Severity.CRITICAL if failure_rate >= t.FAILURE_RATE_CRITICAL else Severity.HIGH
            found.append(_workflow_insight(
                wf, "high_failure_rate", severity,
                title=f"{wf.name} has {failure_rate:.1f}% failure rate",
                description=f"{wf.failed} failures out of {total} executions in this period",
                failure_rate=failure_rate,
                failed_count=wf.failed,
            ))
        return found

    def detect_consecutive_failures(self, stats: Stats) -> List[Insight]:
        found = []
        for wf in stats.values():
            newest = sort_chronologically(wf.executions, newest_first=True)[:t.CONSECUTIVE_WINDOW]

            streak = 0
            for execution in newest:
                if normalize_status(execution.status) is not ExecutionStatus.FAILED:
                    break
                streak += 1

            if streak >= t.CONSECUTIVE_FAILURES_THRESHOLD:
                found.append(_workflow_insight(
                    wf, "consecutive_failures", Severity.HIGH,
                    title=f"{wf.name} failed {streak} times consecutively",
                    description=f"Last {streak} executions all failed",
                    failure_rate=0.0,
                    failed_count=streak,
                ))
        return found

    def detect_task_usage_spike(self, stats: Stats) -> List[Insight]:
        found = []
        for wf in stats.values():
            if wf.total < t.SPIKE_MIN_EXECUTIONS:
                continue

            historical, recent = split_historical_recent(wf.executions)
            if len(historical) < t.SPIKE_MIN_HISTORICAL or len(recent) < t.SPIKE_MIN_RECENT:
                continue

            hist_avg = mean_tasks(historical)
            recent_avg = mean_tasks(recent)
            if hist_avg <= 0 or recent_avg < hist_avg * t.SPIKE_MULTIPLIER:
                continue

            increase = (recent_avg - hist_avg) / hist_avg * 100
            severity = Severity.CRITICAL if increase >= t.SPIKE_CRITICAL_PERCENT else Severity.HIGH
            found.append(_workflow_insight(
                wf, "task_usage_spike", severity,
                title=f"{wf.name} task usage spiked {increase:.0f}%",
                description=(
                    f"Recent avg: {recent_avg:.1f} tasks/run vs historical: {hist_avg:.1f} tasks/run"
                ),
                failure_rate=0.0,
                failed_count=0,
                increase_percent=increase,
            ))
        return found

    def detect_aggregate_task_spike(self, executions: Sequence[ExecutionRecord]) -> Optional[Insight]:
        """Dashboard-wide spike across every non-excluded execution."""
        candidates = standard_executions(executions)
        if len(candidates) < t.AGGREGATE_SPIKE_MIN_EXECUTIONS:
            return None

        historical, recent = split_historical_recent(candidates)
        if not historical or not recent:
            return None

        hist_avg = mean_tasks(historical)
        recent_avg = mean_tasks(recent)
        if hist_avg <= 0 or recent_avg < hist_avg * t.AGGREGATE_SPIKE_MULTIPLIER:
            return None

        increase = (recent_avg - hist_avg) / hist_avg * 100
        severity = Severity.HIGH if increase >= t.AGGREGATE_SPIKE_HIGH_PERCENT else Severity.MEDIUM
        return Insight(
            type="aggregate_task_spike",
            severity=severity,
            workflow_id=None,
            workflow_name=t.ALL_WORKFLOWS_NAME,
            workflow_link=None,
            title=f"Overall task usage up {increase:.0f}%",
            description=(
                f"Recent period: {recent_avg:.1f} tasks/execution vs historical: "
                f"{hist_avg:.1f} tasks/execution"
            ),
            failure_rate=0.0,
            failed_count=0,
            increase_percent=increase,
        )

    def detect_execution_drop(self, stats: Stats) -> List[Insight]:
        found = []
        for wf in stats.values():
            if wf.total < t.RATE_DROP_MIN_EXECUTIONS:
                continue

            historical, recent = split_historical_recent(wf.executions)
            if len(historical) < t.RATE_DROP_MIN_HISTORICAL or len(recent) < t.RATE_DROP_MIN_RECENT:
                continue

            hist_rate = len(historical) / _span_days(historical)
            recent_rate = len(recent) / _span_days(recent)
            if hist_rate < t.RATE_DROP_MIN_HISTORICAL_PER_DAY or recent_rate >= hist_rate * t.RATE_DROP_RATIO:
                continue

            drop = (hist_rate - recent_rate) / hist_rate * 100
            severity = Severity.HIGH if drop >= t.RATE_DROP_HIGH_PERCENT else Severity.MEDIUM
            found.append(_workflow_insight(
                wf, "execution_drop", severity,
                title=f"{wf.name} executions dropped {drop:.0f}%",
                description=f"Recent: {recent_rate:.1f}/day vs historical: {hist_rate:.1f}/day",
                failure_rate=0.0,
                failed_count=0,
                drop_percent=drop,
            ))
        return found

    def detect_task_usage_drop(self, stats: Stats) -> List[Insight]:
        found = []
        for wf in stats.values():
            if wf.total < t.TASK_DROP_MIN_EXECUTIONS:
                continue

            historical, recent = split_historical_recent(wf.executions)
            if len(historical) < t.TASK_DROP_MIN_HISTORICAL or len(recent) < t.TASK_DROP_MIN_RECENT:
                continue

            hist_avg = mean_tasks(historical)
            recent_avg = mean_tasks(recent)
            # Negligible baselines are noise
            if hist_avg < t.TASK_DROP_MIN_BASELINE:
                continue

            if recent_avg < t.TASK_DROP_ZERO_BELOW:
                found.append(_workflow_insight(
                    wf, "task_usage_zero", Severity.CRITICAL,
                    title=f"{wf.name} task usage dropped to zero",
                    description=(
                        f"Was using {hist_avg:.1f} tasks/run, now {recent_avg:.1f} - workflow may be broken"
                    ),
                    failure_rate=0.0,
                    failed_count=0,
                    drop_percent=100.0,
                ))
            elif recent_avg < hist_avg * t.TASK_DROP_RATIO:
                drop = (hist_avg - recent_avg) / hist_avg * 100
                severity = Severity.HIGH if drop >= t.TASK_DROP_HIGH_PERCENT else Severity.MEDIUM
                found.append(_workflow_insight(
                    wf, "task_usage_drop", severity,
                    title=f"{wf.name} task usage dropped {drop:.0f}%",
                    description=(
                        f"Recent avg: {recent_avg:.1f} tasks/run vs historical: {hist_avg:.1f} tasks/run"
                    ),
                    failure_rate=0.0,
                    failed_count=0,
                    drop_percent=drop,
                ))
        return found

    # ── Optimization ────────────────────────────────────────────────────

    def detect_slow_execution(self, stats: Stats) -> List[Insight]:
        found = []
        for wf in stats.values():
            if len(wf.runtimes) < t.SLOW_MIN_RUNTIMES:
                continue

            avg_runtime = mean(wf.runtimes)
            if avg_runtime > t.SLOW_RUNTIME_SECONDS:
                found.append(_workflow_insight(
                    wf, "slow_execution", Severity.MEDIUM,
                    title=f"{wf.name} has slow execution time",
                    description=f"Average runtime: {avg_runtime:.1f}s across {len(wf.runtimes)} executions",
                    avg_runtime=avg_runtime,
                ))

        found.sort(key=lambda i: i.avg_runtime, reverse=True)
        return found

    # ── Activity ────────────────────────────────────────────────────────

    def detect_unused_resources(
        self,
        stats: Stats,
        workflows: Sequence[WorkflowRecord],
        executions: Sequence[ExecutionRecord],
        forms: Sequence[FormRecord],
    ) -> List[Insight]:
        """Unused workflows (max 5) followed by unused forms (max 5)."""
        unused_workflows = [
            Insight(
                type="no_executions",
                severity=Severity.LOW,
                workflow_id=wf.id,
                workflow_name=wf.name,
                workflow_link=wf.link,
                title=f"{wf.name} has no executions",
                description="No executions in the selected date range",
            )
            for wf in standard_workflows(workflows)
            if wf.id not in stats
        ]

        submitted_form_ids = {
            e.trigger_form_id or e.form_id
            for e in executions
            if e.trigger_type == t.FORM_SUBMISSION_TRIGGER and (e.trigger_form_id or e.form_id)
        }
        unused_forms = [
            Insight(
                type="no_form_submissions",
                severity=Severity.LOW,
                form_id=form.id,
                form_name=form.name,
                form_link=form.link,
                title=f"{form.name} has no submissions",
                description="No form submissions in the selected date range",
            )
            for form in forms
            if form.id not in submitted_form_ids
        ]

        return unused_workflows[:t.ACTIVITY_WORKFLOW_LIMIT] + unused_forms[:t.ACTIVITY_FORM_LIMIT]

    # ── Missing data ────────────────────────────────────────────────────

    def detect_missing_time_savings(self, stats: Stats, workflows: Sequence[WorkflowRecord]) -> List[Insight]:
        """Every workflow without a positive time-savings value, unsorted and uncapped."""
        found = []
        for wf in workflows:
            saved = parse_number(wf.human_seconds_saved)
            if saved is not None and saved > 0:
                continue

            agg = stats.get(wf.id)
            found.append(Insight(
                type="missing_time_savings",
                severity=Severity.INFO,
                workflow_id=wf.id,
                workflow_name=wf.name,
                workflow_link=wf.link,
                execution_count=agg.total if agg else 0,
            ))
        return found


def generate_insights(
    workflows: Sequence[WorkflowRecord],
    executions: Sequence[ExecutionRecord],
    forms: Sequence[FormRecord],
) -> Insights:
    return InsightEngine().generate(workflows, executions, forms)


def sort_missing_by_execution_count(missing: Sequence[Insight]) -> List[Insight]:
    """Table ordering for the missing-data view: most executed first."""
    return sorted(missing, key=lambda i: i.execution_count or 0, reverse=True)
