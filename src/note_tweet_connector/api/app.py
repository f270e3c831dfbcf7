"""Fábrica da aplicação FastAPI.

Uso com uvicorn:
    uvicorn note_tweet_connector.api.app:create_app --factory
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from prometheus_client import REGISTRY, CollectorRegistry

from note_tweet_connector.adapters.misskey.client import MisskeyClient
from note_tweet_connector.adapters.twitter.ifttt_client import IftttClient
from note_tweet_connector.adapters.twitter.poster import CompositeTweetPoster
from note_tweet_connector.adapters.twitter.twitter_client import TwitterClient
from note_tweet_connector.api.routes import router
from note_tweet_connector.application.note_to_tweet import NoteToTweetRelay
from note_tweet_connector.application.tweet_to_note import TweetToNoteRelay
from note_tweet_connector.config.settings import Settings, get_settings
from note_tweet_connector.infra.content_tracker import create_content_tracker
from note_tweet_connector.infra.http import create_http_client
from note_tweet_connector.observability.logging import configure_logging, get_logger
from note_tweet_connector.observability.metrics import (
    RelayMetrics,
    start_metrics_server,
    stop_metrics_server,
)
from note_tweet_connector.observability.middleware import CorrelationIdMiddleware

logger = get_logger(__name__)


def _log_credential_gaps(settings: Settings) -> None:
    """Credenciais ausentes não impedem o start; apenas a direção afetada falha."""
    gaps = {
        "misskey_hook": [] if settings.misskey_hook_secret else ["MISSKEY_HOOK_SECRET"],
        "ifttt_hook": [] if settings.ifttt_hook_secret else ["IFTTT_HOOK_SECRET"],
        "misskey": settings.validate_misskey_config(),
        "ifttt": settings.validate_ifttt_config(),
        "twitter": settings.validate_twitter_config(),
    }
    for target, errors in gaps.items():
        if errors:
            logger.warning("credentials_missing", extra={"target": target, "errors": errors})


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = app.state.settings
    tracker = app.state.tracker
    http_client = app.state.http_client
    await tracker.start()
    metrics_server = None
    if settings.metrics_port is not None:
        metrics_server = start_metrics_server(
            app.state.metrics.registry, settings.listen_host, settings.metrics_port
        )
    app.state.metrics_server = metrics_server
    logger.info(
        "service_started",
        extra={"version": settings.version, "port": settings.port},
    )
    try:
        yield
    finally:
        if metrics_server is not None:
            stop_metrics_server(metrics_server)
            app.state.metrics_server = None
        await tracker.stop()
        await http_client.close()
        logger.info("service_stopped")


def create_app(
    settings: Settings | None = None,
    registry: CollectorRegistry = REGISTRY,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Cria a aplicação FastAPI.

    Args:
        settings: Configurações. Se None, usa get_settings()
        registry: Registry Prometheus (testes usam um registry próprio)
        transport: Transport httpx alternativo para os clientes outbound (testes)

    Raises:
        ValueError: configuração do rastreador inválida
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.service_name, settings.log_format)

    validation_errors = settings.validate_tracker_config()
    if validation_errors:
        error_msg = "; ".join(validation_errors)
        raise ValueError(f"Configuração inválida: {error_msg}")
    _log_credential_gaps(settings)

    metrics = RelayMetrics(settings.version, registry=registry)
    tracker = create_content_tracker(settings)
    metrics.bind_tracker_size(tracker.__len__)
    http_client = create_http_client(settings, transport=transport)

    tweet_poster = CompositeTweetPoster(
        ifttt=IftttClient(http_client, settings.ifttt_event, settings.ifttt_key),
        twitter=TwitterClient(
            http_client,
            api_key=settings.api_key,
            api_key_secret=settings.api_key_secret,
            access_token=settings.access_token,
            access_token_secret=settings.access_token_secret,
            media_host=settings.misskey_media_host,
        ),
    )
    note_poster = MisskeyClient(http_client, settings.misskey_host, settings.misskey_token)

    app = FastAPI(title=settings.service_name, version=settings.version, lifespan=_lifespan)
    app.add_middleware(CorrelationIdMiddleware)
    app.include_router(router)

    app.state.settings = settings
    app.state.metrics = metrics
    app.state.metrics_server = None
    app.state.tracker = tracker
    app.state.http_client = http_client
    app.state.note_to_tweet = NoteToTweetRelay(
        tracker,
        tweet_poster,
        metrics,
        default_host=settings.misskey_host,
        post_deadline_seconds=settings.post_deadline_seconds,
    )
    app.state.tweet_to_note = TweetToNoteRelay(
        tracker,
        note_poster,
        metrics,
        post_deadline_seconds=settings.post_deadline_seconds,
    )

    return app
