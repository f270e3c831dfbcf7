"""Métricas Prometheus do relay.

Os relays chamam apenas os métodos `record_*`. A exposição HTTP roda em um
listener próprio (`METRICS_PORT`), separado da porta dos webhooks.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from wsgiref.simple_server import WSGIServer

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from note_tweet_connector.domain.enums import RelayDirection, SkipReason
from note_tweet_connector.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DirectionCounters:
    """Contadores de uma direção do relay (note2tweet ou tweet2note)."""

    total: Counter
    success: Counter
    errors: Counter
    skipped: Counter


def _direction_counters(
    prefix: str, label: str, registry: CollectorRegistry | None
) -> DirectionCounters:
    return DirectionCounters(
        total=Counter(
            f"{prefix}_total",
            f"Total number of {label} conversions attempted",
            registry=registry,
        ),
        success=Counter(
            f"{prefix}_success_total",
            f"Total number of successful {label} conversions",
            registry=registry,
        ),
        errors=Counter(
            f"{prefix}_errors_total",
            f"Total number of failed {label} conversions",
            registry=registry,
        ),
        skipped=Counter(
            f"{prefix}_skipped_total",
            f"Total number of skipped {label} conversions",
            ["reason"],
            registry=registry,
        ),
    )


class RelayMetrics:
    """Coletor de métricas do relay.

    `registry=None` cria métricas não registradas (útil em testes que não
    inspecionam valores); testes que inspecionam usam um CollectorRegistry
    próprio para evitar registro duplicado no registry global.
    """

    def __init__(self, version: str, registry: CollectorRegistry | None = REGISTRY) -> None:
        self.registry = registry

        self.webhook_requests = Counter(
            "webhook_requests_total",
            "Total number of webhook requests received",
            ["source", "status"],
            registry=registry,
        )
        self.webhook_request_errors = Counter(
            "webhook_request_errors_total",
            "Total number of webhook request errors",
            ["source", "error_type"],
            registry=registry,
        )
        self.webhook_request_duration = Histogram(
            "webhook_request_duration_seconds",
            "Duration of webhook request processing",
            ["source"],
            registry=registry,
        )

        self._directions = {
            RelayDirection.NOTE_TO_TWEET: _direction_counters(
                "note2tweet", "note to tweet", registry
            ),
            RelayDirection.TWEET_TO_NOTE: _direction_counters(
                "tweet2note", "tweet to note", registry
            ),
        }

        self.tracker_entries = Gauge(
            "tracker_entries_total",
            "Current number of entries in the content tracker",
            registry=registry,
        )
        self.tracker_duplicates_hit = Counter(
            "tracker_duplicates_hit_total",
            "Total number of duplicate content detected",
            registry=registry,
        )

        self.build_info = Gauge(
            "build_info",
            "Build information",
            ["version"],
            registry=registry,
        )
        self.build_info.labels(version=version).set(1)

    @classmethod
    def unregistered(cls, version: str = "test") -> RelayMetrics:
        """Métricas fora de qualquer registry."""
        return cls(version, registry=None)

    def counters(self, direction: RelayDirection) -> DirectionCounters:
        return self._directions[direction]

    def record_attempt(self, direction: RelayDirection) -> None:
        self._directions[direction].total.inc()

    def record_success(self, direction: RelayDirection) -> None:
        self._directions[direction].success.inc()

    def record_error(self, direction: RelayDirection) -> None:
        self._directions[direction].errors.inc()

    def record_skip(self, direction: RelayDirection, reason: SkipReason) -> None:
        self._directions[direction].skipped.labels(reason=reason.value).inc()
        if reason is SkipReason.DUPLICATE:
            self.tracker_duplicates_hit.inc()

    def record_webhook(self, source: str, status: str) -> None:
        self.webhook_requests.labels(source=source, status=status).inc()

    def record_webhook_error(self, source: str, error_type: str) -> None:
        self.webhook_request_errors.labels(source=source, error_type=error_type).inc()

    def bind_tracker_size(self, size_fn: Callable[[], int]) -> None:
        """Gauge de entradas passa a ler o tamanho do rastreador sob demanda."""
        self.tracker_entries.set_function(size_fn)


def start_metrics_server(registry: CollectorRegistry, host: str, port: int) -> WSGIServer:
    """Sobe o listener `/metrics` em uma thread daemon.

    `port=0` escolhe uma porta livre; a porta efetiva fica em `server.server_port`.
    """
    server, _thread = start_http_server(port, addr=host, registry=registry)
    logger.info(
        "metrics_server_started",
        extra={"host": host, "port": server.server_port},
    )
    return server


def stop_metrics_server(server: WSGIServer) -> None:
    server.shutdown()
    server.server_close()
    logger.info("metrics_server_stopped")
