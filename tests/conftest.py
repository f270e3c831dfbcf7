from __future__ import annotations

import pytest
from prometheus_client import CollectorRegistry

from note_tweet_connector.config.settings import Settings, get_settings
from note_tweet_connector.infra.content_tracker import ContentTracker
from note_tweet_connector.observability.metrics import RelayMetrics
from tests.helpers.fakes import FakeNotePoster, FakeTweetPoster
from tests.helpers.payloads import IFTTT_SECRET, MISSKEY_SECRET, FakeClock


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def settings() -> Settings:
    """Settings completas, sem leitura de .env."""
    return Settings(
        _env_file=None,
        log_level="DEBUG",
        metrics_port=None,
        misskey_hook_secret=MISSKEY_SECRET,
        ifttt_hook_secret=IFTTT_SECRET,
        misskey_host="misskey.example",
        misskey_token="misskey-token",
        misskey_media_host="media.misskey.example",
        ifttt_event="note_posted",
        ifttt_key="ifttt-key",
        api_key="ck",
        api_key_secret="cs",
        access_token="at",
        access_token_secret="ats",
    )


@pytest.fixture()
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture()
def metrics(registry: CollectorRegistry) -> RelayMetrics:
    return RelayMetrics("test", registry=registry)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def tracker(clock: FakeClock) -> ContentTracker:
    return ContentTracker(ttl_seconds=5 * 60 * 60, sweep_interval_seconds=60, clock=clock)


@pytest.fixture()
def tweet_poster() -> FakeTweetPoster:
    return FakeTweetPoster()


@pytest.fixture()
def note_poster() -> FakeNotePoster:
    return FakeNotePoster()
