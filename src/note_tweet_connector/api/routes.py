"""Rotas HTTP: webhook único e healthcheck."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from note_tweet_connector.adapters.hook_secret import (
    IFTTT_SECRET_HEADER,
    MISSKEY_SECRET_HEADER,
    verify_hook_secret,
)
from note_tweet_connector.api.dependencies import (
    get_metrics,
    get_note_to_tweet_relay,
    get_settings,
    get_tweet_to_note_relay,
)
from note_tweet_connector.application.note_to_tweet import NoteToTweetRelay
from note_tweet_connector.application.tweet_to_note import TweetToNoteRelay
from note_tweet_connector.config.settings import Settings
from note_tweet_connector.domain.errors import (
    DownstreamError,
    PayloadDecodeError,
    RelayConfigError,
)
from note_tweet_connector.domain.models import RelayResult
from note_tweet_connector.observability.logging import get_logger
from note_tweet_connector.observability.metrics import RelayMetrics
from note_tweet_connector.observability.middleware import (
    get_correlation_id,
    mark_webhook_source,
)
from note_tweet_connector.observability.timing import timed

logger = get_logger(__name__)

router = APIRouter()

MISSKEY_USER_AGENT = "Misskey-Hooks"
IFTTT_USER_AGENT = "IFTTT-Hooks"


def _fail(
    metrics: RelayMetrics,
    source: str,
    status_code: int,
    detail: str,
    request_status: str = "error",
) -> HTTPException:
    metrics.record_webhook(source, request_status)
    metrics.record_webhook_error(source, detail)
    return HTTPException(status_code=status_code, detail=detail)


async def _relay(
    source: str,
    relay: NoteToTweetRelay | TweetToNoteRelay,
    raw_body: bytes,
    metrics: RelayMetrics,
) -> RelayResult:
    """Executa o relay e traduz erros de domínio em HTTPException."""
    try:
        with timed(source, metrics.webhook_request_duration):
            result = await relay.handle(raw_body)
    except PayloadDecodeError as exc:
        raise _fail(metrics, source, status.HTTP_400_BAD_REQUEST, "invalid_payload") from exc
    except RelayConfigError as exc:
        raise _fail(
            metrics, source, status.HTTP_500_INTERNAL_SERVER_ERROR, "relay_misconfigured"
        ) from exc
    except DownstreamError as exc:
        raise _fail(metrics, source, status.HTTP_502_BAD_GATEWAY, "downstream_failed") from exc

    metrics.record_webhook(source, "success")
    return result


@router.get("/healthz", response_class=PlainTextResponse)
def healthz(settings: Settings = Depends(get_settings)) -> str:
    """Healthcheck em texto puro."""
    return f"{settings.service_name} is healthy\nVersion: {settings.version}"



@router.post("/")
async def webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    metrics: RelayMetrics = Depends(get_metrics),
    note_to_tweet: NoteToTweetRelay = Depends(get_note_to_tweet_relay),
    tweet_to_note: TweetToNoteRelay = Depends(get_tweet_to_note_relay),
) -> dict[str, Any]:
    """Recebe webhooks do Misskey e do IFTTT, roteados pelo User-Agent."""
    user_agent = request.headers.get("user-agent", "")

    if MISSKEY_USER_AGENT in user_agent:
        source = "misskey"
        header_name, expected = MISSKEY_SECRET_HEADER, settings.misskey_hook_secret
        relay: NoteToTweetRelay | TweetToNoteRelay = note_to_tweet
    elif IFTTT_USER_AGENT in user_agent:
        source = "ifttt"
        header_name, expected = IFTTT_SECRET_HEADER, settings.ifttt_hook_secret
        relay = tweet_to_note
    else:
        mark_webhook_source(request, "unknown")
        logger.warning("unsupported_user_agent", extra={"user_agent": user_agent})
        raise _fail(
            metrics,
            "unknown",
            status.HTTP_400_BAD_REQUEST,
            "unsupported_user_agent",
            request_status="bad_request",
        )

    mark_webhook_source(request, source)
    secret_result = verify_hook_secret(request.headers, header_name, expected)
    if not secret_result.valid:
        logger.warning(
            "webhook_secret_rejected",
            extra={"source": source, "error": secret_result.error},
        )
        raise _fail(
            metrics,
            source,
            status.HTTP_401_UNAUTHORIZED,
            "invalid_secret",
            request_status="unauthorized",
        )

    raw_body = await request.body()
    result = await _relay(source, relay, raw_body, metrics)

    body: dict[str, Any] = {
        "ok": True,
        "status": result.status.value,
        "direction": result.direction.value,
        "correlation_id": get_correlation_id(),
    }
    if result.reason is not None:
        body["reason"] = result.reason.value
    else:
        body["media_count"] = result.media_count
    return body
