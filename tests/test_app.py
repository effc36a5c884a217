# tests/test_app.py
from unittest.mock import patch

import engagement_tracker.app as app
from engagement_tracker.analysis.insights import generate_insights
from engagement_tracker.timeseries.backends import FileBackend, MemoryBackend
from engagement_tracker.timeseries.store import TimeSeriesStore


def test_build_backend_memory(monkeypatch):
    monkeypatch.setenv("METRICS_STORE_DIR", ":memory:")
    assert isinstance(app.build_backend(), MemoryBackend)


def test_build_backend_file(monkeypatch, tmp_path):
    monkeypatch.setenv("METRICS_STORE_DIR", str(tmp_path))
    backend = app.build_backend()

    assert isinstance(backend, FileBackend)
    backend.set("probe", "{}")
    assert (tmp_path / "probe.json").exists()


def test_build_processor_without_openai_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("REPORT_SAMPLE_FIRST_ENTRIES", raising=False)
    store = TimeSeriesStore()

    processor = app.build_processor(store)

    assert processor.time_series_store is store
    assert processor._insights_generator is None
    assert processor._sample_first_entries is False


def test_build_processor_with_openai_key_and_sampling(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("REPORT_SAMPLE_FIRST_ENTRIES", "true")

    processor = app.build_processor(TimeSeriesStore())

    assert processor._insights_generator is generate_insights
    assert processor._sample_first_entries is True


def test_build_processor_defaults_to_env_store(monkeypatch):
    monkeypatch.setenv("METRICS_STORE_DIR", ":memory:")
    with patch("engagement_tracker.app.TimeSeriesStore") as store_cls:
        app.build_processor()
    backend = store_cls.call_args.args[0]
    assert isinstance(backend, MemoryBackend)


def test_build_slack_client(monkeypatch):
    monkeypatch.delenv("SLACK_BOT_TOKEN", raising=False)
    assert app.build_slack_client() is None

    monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-test")
    client = app.build_slack_client()
    assert client.token == "xoxb-test"
