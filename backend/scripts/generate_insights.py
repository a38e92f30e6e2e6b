"""
Offline insights runner for dashboard exports.

Usage:
  python scripts/generate_insights.py --input export.json --pretty
  python scripts/generate_insights.py --workflows wf.csv --executions ex.csv --forms forms.json
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from flowinsights.date_range import get_date_range, has_sufficient_history
from flowinsights.insight_engine import generate_insights, sort_missing_by_execution_count
from flowinsights.parsers import InsightInputError, load_collections, load_export

logger = logging.getLogger("generate_insights")


def _build_report(args: argparse.Namespace) -> Dict[str, Any]:
    if args.input:
        workflows, executions, forms = load_export(Path(args.input))
    else:
        workflows, executions, forms = load_collections(
            Path(args.workflows),
            Path(args.executions),
            Path(args.forms) if args.forms else None,
        )

    if not workflows and not executions:
        raise InsightInputError("No dashboard data available")

    date_range = get_date_range(executions)
    insights = generate_insights(workflows, executions, forms)
    insights.missing = sort_missing_by_execution_count(insights.missing)
    return {
        "dateRange": date_range.to_dict(),
        "sufficientHistory": has_sufficient_history(date_range),
        "summary": insights.summary(),
        "insights": insights.to_dict(),
    }


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Generate execution insights from a dashboard export")
    ap.add_argument("--input", help="JSON export with workflows, executions and forms")
    ap.add_argument("--workflows", help="Workflows file (csv/json/jsonl)")
    ap.add_argument("--executions", help="Executions file (csv/json/jsonl)")
    ap.add_argument("--forms", help="Forms file (csv/json/jsonl)")
    ap.add_argument("--output", help="Write the report here instead of stdout")
    ap.add_argument("--pretty", action="store_true", help="Indent JSON output")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if not args.input and not (args.workflows and args.executions):
        ap.error("either --input or both --workflows and --executions are required")

    try:
        report = _build_report(args)
    except InsightInputError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    text = json.dumps(report, indent=2 if args.pretty else None)
    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
        s = report["summary"]
        print(
            f"Wrote {args.output}: attention={s['attention']} optimization={s['optimization']} "
            f"activity={s['activity']} missing={s['missing']}"
        )
        if not report["sufficientHistory"]:
            print(f"warning: only {report['dateRange']['days']} days of history", file=sys.stderr)
    else:
        print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
