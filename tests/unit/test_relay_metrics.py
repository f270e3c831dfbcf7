"""Testes para observability/metrics.py."""

from __future__ import annotations

import httpx
from prometheus_client import CollectorRegistry, generate_latest

from note_tweet_connector.domain.enums import RelayDirection, SkipReason
from note_tweet_connector.observability.metrics import (
    RelayMetrics,
    start_metrics_server,
    stop_metrics_server,
)


def test_build_info_exposes_version() -> None:
    registry = CollectorRegistry()
    RelayMetrics("2.0.1", registry=registry)
    assert registry.get_sample_value("build_info", {"version": "2.0.1"}) == 1


def test_direction_counters_are_independent() -> None:
    registry = CollectorRegistry()
    metrics = RelayMetrics("t", registry=registry)

    metrics.record_attempt(RelayDirection.NOTE_TO_TWEET)
    metrics.record_success(RelayDirection.NOTE_TO_TWEET)
    metrics.record_attempt(RelayDirection.TWEET_TO_NOTE)
    metrics.record_error(RelayDirection.TWEET_TO_NOTE)

    assert registry.get_sample_value("note2tweet_total") == 1
    assert registry.get_sample_value("note2tweet_success_total") == 1
    assert registry.get_sample_value("tweet2note_total") == 1
    assert registry.get_sample_value("tweet2note_errors_total") == 1
    assert registry.get_sample_value("tweet2note_success_total") == 0


def test_skip_reasons_are_labelled() -> None:
    registry = CollectorRegistry()
    metrics = RelayMetrics("t", registry=registry)

    metrics.record_skip(RelayDirection.NOTE_TO_TWEET, SkipReason.NOT_PUBLIC)
    metrics.record_skip(RelayDirection.NOTE_TO_TWEET, SkipReason.DUPLICATE)

    assert registry.get_sample_value("note2tweet_skipped_total", {"reason": "not-public"}) == 1
    assert registry.get_sample_value("note2tweet_skipped_total", {"reason": "duplicate"}) == 1
    assert registry.get_sample_value("tracker_duplicates_hit_total") == 1


def test_webhook_counters() -> None:
    registry = CollectorRegistry()
    metrics = RelayMetrics("t", registry=registry)

    metrics.record_webhook("misskey", "success")
    metrics.record_webhook_error("ifttt", "invalid_secret")

    assert (
        registry.get_sample_value("webhook_requests_total", {"source": "misskey", "status": "success"})
        == 1
    )
    assert (
        registry.get_sample_value(
            "webhook_request_errors_total", {"source": "ifttt", "error_type": "invalid_secret"}
        )
        == 1
    )


def test_tracker_gauge_reads_size_on_collect() -> None:
    registry = CollectorRegistry()
    metrics = RelayMetrics("t", registry=registry)
    entries = {"a": 1.0}
    metrics.bind_tracker_size(lambda: len(entries))

    assert registry.get_sample_value("tracker_entries_total") == 1
    entries["b"] = 2.0
    assert registry.get_sample_value("tracker_entries_total") == 2


def test_separate_registries_do_not_collide() -> None:
    RelayMetrics("a", registry=CollectorRegistry())
    RelayMetrics("b", registry=CollectorRegistry())
    unregistered = RelayMetrics.unregistered()
    unregistered.record_attempt(RelayDirection.NOTE_TO_TWEET)


def test_exposition_contains_metric_names() -> None:
    registry = CollectorRegistry()
    RelayMetrics("t", registry=registry)
    text = generate_latest(registry).decode()
    for name in ("note2tweet_total", "tweet2note_skipped_total", "webhook_request_duration_seconds"):
        assert name in text


def test_metrics_server_exposes_registry() -> None:
    registry = CollectorRegistry()
    metrics = RelayMetrics("t", registry=registry)
    metrics.record_skip(RelayDirection.TWEET_TO_NOTE, SkipReason.LOOP_PATTERN)

    server = start_metrics_server(registry, "127.0.0.1", 0)
    try:
        response = httpx.get(
            f"http://127.0.0.1:{server.server_port}/metrics", trust_env=False
        )
    finally:
        stop_metrics_server(server)

    assert response.status_code == 200
    assert 'tweet2note_skipped_total{reason="loop-pattern"} 1.0' in response.text
