"""Unit tests for digest rendering and Slack posting helpers."""
from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from engagement_tracker.reporting.aggregator import compute_report
from engagement_tracker.reporting.models import AIInsights, CombinedReport
from engagement_tracker.reporting.render import post_report_to_slack, render_report


@pytest.fixture()
def combined(sample_records) -> CombinedReport:
    return CombinedReport(report=compute_report(sample_records), cohort_id="2024-Q4")


def _client() -> MagicMock:
    client = MagicMock()
    client.chat_postMessage.return_value = {"ts": "111.222"}
    return client


def test_render_report_basic(combined: CombinedReport):
    out = render_report(combined)

    assert "PLDG metrics – 2024-Q4" in out
    assert "+100% week over week" in out
    assert "| Week 2 | 2 | 1 | 1 | 0 | 4 | 1 |" in out
    assert "Partner A: 5 issues" in out
    assert "Low Engagement Alert" in out
    assert "😊 50%" in out
    assert "*Insights*" not in out


def test_render_report_with_insights(combined: CombinedReport):
    combined.insights = AIInsights(
        key_trends=["Contributions doubled"], recommendations=["Pair newcomers"]
    )
    out = render_report(combined)

    assert "*Insights*" in out
    assert "• Contributions doubled" in out
    assert "_Recommendations_" in out
    assert "_Concerns_" not in out


def test_post_report_short_message(combined: CombinedReport):
    with patch("engagement_tracker.reporting.render.render_report", return_value="short") as render_mp:
        client = _client()
        post_report_to_slack(combined=combined, client=client, channel="C123")

    render_mp.assert_called_once()
    assert client.chat_postMessage.call_count == 2
    client.chat_postMessage.assert_any_call(channel="C123", text="*Engagement metrics for 2024-Q4*")
    client.chat_postMessage.assert_called_with(channel="C123", text="short", thread_ts="111.222")
    client.files_upload_v2.assert_not_called()


def test_post_report_long_upload(combined: CombinedReport):
    long_text = "x" * 3000
    with patch("engagement_tracker.reporting.render.render_report", return_value=long_text):
        client = _client()
        post_report_to_slack(combined=combined, client=client, channel="C123")

    client.files_upload_v2.assert_called_once()
    kwargs = client.files_upload_v2.call_args.kwargs
    assert kwargs["filename"] == "engagement_2024-Q4.md"
    assert kwargs["thread_ts"] == "111.222"
    assert kwargs["content"] == long_text
    client.chat_postMessage.assert_called_once()


def test_post_report_propagates_slack_errors(combined: CombinedReport):
    from slack_sdk.errors import SlackApiError

    client = MagicMock()
    client.chat_postMessage.side_effect = SlackApiError("boom", {"error": "channel_not_found"})

    with pytest.raises(SlackApiError):
        post_report_to_slack(combined=combined, client=client, channel="C404")
