"""Middleware de contexto por requisição.

Propaga o `x-correlation-id` e registra um evento `request_completed` por
requisição. A rota do webhook marca a origem em `request.state.webhook_source`
(misskey, ifttt ou unknown); requisições sem origem (healthcheck) são
registradas em DEBUG.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

CORRELATION_ID_HEADER = "x-correlation-id"

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

logger = logging.getLogger(__name__)


def get_correlation_id() -> str:
    """Retorna o correlation_id corrente (ou vazio)."""

    return _correlation_id.get()


def mark_webhook_source(request: Request, source: str) -> None:
    request.state.webhook_source = source


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Gera ou propaga correlation_id e registra o desfecho de cada webhook."""

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        correlation_id = request.headers.get(CORRELATION_ID_HEADER) or uuid.uuid4().hex
        token = _correlation_id.set(correlation_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            source = getattr(request.state, "webhook_source", None)
            logger.log(
                logging.INFO if source else logging.DEBUG,
                "request_completed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "source": source,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
        finally:
            _correlation_id.reset(token)

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
