"""Render metrics digests using Jinja2 templates and deliver them to Slack."""
from __future__ import annotations

import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from engagement_tracker.reporting.context import build_digest_context, weekly_change_label
from engagement_tracker.reporting.models import CombinedReport

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).parent / "templates"

# Slack messages are markdown; HTML escaping would mangle apostrophes etc.
_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["change"] = weekly_change_label

# Slack truncates long messages; above this the digest is uploaded as a file
MAX_MESSAGE_CHARS = 2800


def render_report(combined: CombinedReport) -> str:
    """Render a Slack-friendly markdown digest from a :class:`CombinedReport`."""

    context = build_digest_context(combined)
    template = _env.get_template("digest.md.j2")
    return template.render(**context.to_dict())


def post_report_to_slack(*, combined: CombinedReport, client, channel: str) -> None:
    """Send the digest to Slack *channel* using *client* (``slack_sdk.WebClient``).

    A parent message is posted first; the digest goes into its thread, as a
    message when short enough, otherwise as an uploaded file.
    ``SlackApiError`` propagates to the caller.
    """

    label = combined.cohort_id or "current program"
    parent_resp = client.chat_postMessage(
        channel=channel,
        text=f"*Engagement metrics for {label}*",
    )
    parent_ts = parent_resp["ts"]

    report_text = render_report(combined)
    report_len = len(report_text)
    logger.debug("Digest generated for channel=%s len=%d", channel, report_len)

    if report_len < MAX_MESSAGE_CHARS:
        client.chat_postMessage(channel=channel, text=report_text, thread_ts=parent_ts)
    else:
        logger.debug("Uploading digest as file (len=%d >= %d)", report_len, MAX_MESSAGE_CHARS)
        filename_label = (combined.cohort_id or "latest").replace(" ", "_")
        client.files_upload_v2(
            channel=channel,
            title=f"Engagement Metrics {label}",
            content=report_text,
            filename=f"engagement_{filename_label}.md",
            thread_ts=parent_ts,
        )
