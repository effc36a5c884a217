"""Command-line entry point for the engagement tracker.

Examples::

    engagement-tracker process records.json --activity github.json --cohort 2024-Q4
    engagement-tracker process records.json --format markdown --slack-channel C0123
    engagement-tracker trends contribution-count
"""
from __future__ import annotations

import argparse
import asyncio
import datetime
import json
import sys
from typing import Any, List, Optional, Sequence

from slack_sdk.errors import SlackApiError

from engagement_tracker.app import build_processor, build_slack_client, logger
from engagement_tracker.exceptions import EmptyInputError
from engagement_tracker.processor import MetricsProcessor
from engagement_tracker.records import ActivitySnapshot, parse_records
from engagement_tracker.reporting.render import post_report_to_slack, render_report


def _load_json(path: str) -> Any:
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


def _rows(payload: Any) -> List[Any]:
    """Accept a bare list of rows or the fetch layer's ``{"records": [...]}``."""
    if isinstance(payload, dict):
        payload = payload.get("records") or []
    if not isinstance(payload, list):
        raise ValueError("records file must contain a list or an object with 'records'")
    return payload


def _parse_date(value: str) -> datetime.datetime:
    parsed = datetime.datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="engagement-tracker",
        description="Compute developer-program engagement metrics and trends.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    process = sub.add_parser("process", help="compute the metrics report")
    process.add_argument("records", help="JSON file with participation records")
    process.add_argument("--activity", help="JSON file with the activity snapshot")
    process.add_argument("--cohort", help="persist weekly trends under this cohort id")
    process.add_argument(
        "--cohort-start",
        type=_parse_date,
        help="ISO date of week 1 (default: now)",
    )
    process.add_argument("--format", choices=("json", "markdown"), default="json")
    process.add_argument("--insights", action="store_true", help="add AI insights")
    process.add_argument("--slack-channel", help="post the digest to this channel")

    trends = sub.add_parser("trends", help="print the latest cohort's trend series")
    trends.add_argument("metric_type")
    return parser


async def _run_process(args: argparse.Namespace, processor: MetricsProcessor) -> int:
    try:
        records = parse_records(_rows(_load_json(args.records)))
        activity = (
            ActivitySnapshot.from_dict(_load_json(args.activity)) if args.activity else None
        )
    except (OSError, ValueError) as exc:
        logger.error("Could not read input: %s", exc)
        return 1

    try:
        combined = await processor.process_data(
            records,
            activity,
            cohort_id=args.cohort,
            cohort_start=args.cohort_start,
            with_insights=args.insights,
        )
    except EmptyInputError as exc:
        logger.error("%s – nothing to report.", exc)
        return 1

    if args.format == "markdown":
        print(render_report(combined))
    else:
        print(json.dumps(combined.to_dict(), indent=2))

    if args.slack_channel:
        client = build_slack_client()
        if client is None:
            logger.error("SLACK_BOT_TOKEN is required to post to Slack.")
            return 1
        try:
            post_report_to_slack(combined=combined, client=client, channel=args.slack_channel)
        except SlackApiError as exc:
            logger.error("Failed to post digest to %s: %s", args.slack_channel, exc.response.get("error"))
            return 1
    return 0


async def _run_trends(args: argparse.Namespace, processor: MetricsProcessor) -> int:
    analysis = await processor.analyze_trends(args.metric_type)
    print(json.dumps(analysis.to_dict(), indent=2))
    return 0


def main(argv: Optional[Sequence[str]] = None, processor: Optional[MetricsProcessor] = None) -> int:
    args = build_parser().parse_args(argv)
    processor = processor or build_processor()
    runner = _run_process if args.command == "process" else _run_trends
    return asyncio.run(runner(args, processor))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
