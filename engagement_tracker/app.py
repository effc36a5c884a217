"""Composition root: builds the store, processor and Slack client from the environment.

Importing this module loads ``.env`` and configures logging; nothing else
happens until one of the ``build_*`` functions is called, so tests can
construct their own instances freely.
"""
import logging
import os
from typing import Optional

from dotenv import load_dotenv
from slack_sdk import WebClient

from engagement_tracker.processor import MetricsProcessor
from engagement_tracker.timeseries.backends import FileBackend, KeyValueBackend, MemoryBackend
from engagement_tracker.timeseries.store import TimeSeriesStore

# Load environment variables from .env file
load_dotenv()

# Set up logging
logging_level = os.environ.get("ENGAGEMENT_LOG_LEVEL", "INFO")
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging_level
)
logger = logging.getLogger(__name__)

DEFAULT_STORE_DIR = os.path.join("~", ".engagement_tracker")


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def build_backend() -> KeyValueBackend:
    """Return the persistence backend selected by ``METRICS_STORE_DIR``.

    ``METRICS_STORE_DIR=:memory:`` keeps everything in process memory.
    """
    store_dir = os.getenv("METRICS_STORE_DIR", DEFAULT_STORE_DIR)
    if store_dir == ":memory:":
        logger.warning("METRICS_STORE_DIR=:memory: – trend data will not be persisted")
        return MemoryBackend()
    return FileBackend(os.path.expanduser(store_dir))


def build_processor(store: Optional[TimeSeriesStore] = None) -> MetricsProcessor:
    """Create the application's :class:`MetricsProcessor`.

    AI insights are wired in only when ``OPENAI_API_KEY`` is configured.
    """
    if store is None:
        store = TimeSeriesStore(build_backend())

    insights_generator = None
    if os.getenv("OPENAI_API_KEY"):
        from engagement_tracker.analysis.insights import generate_insights  # local import

        insights_generator = generate_insights

    return MetricsProcessor(
        store,
        sample_first_entries=_env_flag("REPORT_SAMPLE_FIRST_ENTRIES"),
        insights_generator=insights_generator,
    )


def build_slack_client() -> Optional[WebClient]:
    """Return a ``WebClient`` when ``SLACK_BOT_TOKEN`` is set, else ``None``."""
    token = os.getenv("SLACK_BOT_TOKEN")
    if not token:
        return None
    return WebClient(token=token)
