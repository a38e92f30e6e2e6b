"""
Fixed heuristic constants used by the insight detectors.

These are not runtime configuration: changing one changes detector behavior
for every dashboard, so they live here as named values rather than in env vars.
"""

# Workflows of this type never save human time and are excluded from analysis
EXCLUDED_WORKFLOW_TYPE = "OPTION_GENERATOR"
FORM_SUBMISSION_TRIGGER = "Form Submission"
UNKNOWN_WORKFLOW_NAME = "Unknown Workflow"
ALL_WORKFLOWS_NAME = "All Workflows"

MS_PER_SECOND = 1000
MS_PER_DAY = 1000 * 60 * 60 * 24

# Historical / recent chronological split
HISTORICAL_SPLIT_RATIO = 0.7

# High failure rate
FAILURE_RATE_MIN_EXECUTIONS = 5
FAILURE_RATE_THRESHOLD = 30.0
FAILURE_RATE_CRITICAL = 50.0

# Consecutive failures
CONSECUTIVE_WINDOW = 5
CONSECUTIVE_FAILURES_THRESHOLD = 3

# Per-workflow task usage spike
SPIKE_MIN_EXECUTIONS = 10
SPIKE_MIN_HISTORICAL = 5
SPIKE_MIN_RECENT = 3
SPIKE_MULTIPLIER = 2.0
SPIKE_CRITICAL_PERCENT = 200.0

# Dashboard-wide task usage spike
AGGREGATE_SPIKE_MIN_EXECUTIONS = 20
AGGREGATE_SPIKE_MULTIPLIER = 1.5
AGGREGATE_SPIKE_HIGH_PERCENT = 100.0

# Execution rate drop
RATE_DROP_MIN_EXECUTIONS = 10
RATE_DROP_MIN_HISTORICAL = 5
RATE_DROP_MIN_RECENT = 2
RATE_DROP_MIN_HISTORICAL_PER_DAY = 1.0
RATE_DROP_RATIO = 0.5
RATE_DROP_HIGH_PERCENT = 80.0
MIN_SPAN_DAYS = 1.0

# Task usage drop
TASK_DROP_MIN_EXECUTIONS = 10
TASK_DROP_MIN_HISTORICAL = 5
TASK_DROP_MIN_RECENT = 3
TASK_DROP_MIN_BASELINE = 5.0
TASK_DROP_ZERO_BELOW = 1.0
TASK_DROP_RATIO = 0.5
TASK_DROP_HIGH_PERCENT = 80.0

# Slow execution
SLOW_MIN_RUNTIMES = 5
SLOW_RUNTIME_SECONDS = 60.0

# Low activity
ACTIVITY_WORKFLOW_LIMIT = 5
ACTIVITY_FORM_LIMIT = 5

# Callers warn when the analysed window is shorter than this
MIN_HISTORY_DAYS = 7
