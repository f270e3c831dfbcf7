"""Cliente HTTP centralizado com timeout, retry opcional e logging.

Usado por todos os clientes outbound (IFTTT, Twitter API, Misskey e o
download de mídia), com:
- Timeouts configuráveis
- Retry com backoff exponencial (desligado por padrão: postagens não são
  idempotentes no destino)
- Logging estruturado sem tokens nem chaves
- Injeção de headers padrão (User-Agent)
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from note_tweet_connector.observability.logging import get_logger

if TYPE_CHECKING:
    from note_tweet_connector.config.settings import Settings

logger: logging.Logger = get_logger(__name__)

# A chave do IFTTT vai no path do trigger
_IFTTT_KEY_PATTERN = re.compile(r"/with/key/[^/?#]+")
_QUERY_SECRET_PATTERN = re.compile(r"(?<=[?&])(access_token|oauth_token|i)=[^&]+")


def _sanitize_url(url: str) -> str:
    """Remove chaves e tokens da URL para logging seguro."""
    sanitized = _IFTTT_KEY_PATTERN.sub("/with/key/***", url)
    return _QUERY_SECRET_PATTERN.sub(r"\1=***", sanitized)


@dataclass
class HttpClientConfig:
    """Configuração do cliente HTTP."""

    timeout_seconds: float = 30.0
    max_retries: int = 0
    backoff_base_seconds: float = 2.0
    backoff_max_seconds: float = 30.0
    default_headers: dict[str, str] = field(default_factory=dict)
    verify_ssl: bool = True


class HttpError(Exception):
    """Erro de requisição HTTP sem expor informações sensíveis."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        is_retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.is_retryable = is_retryable


def _is_retryable_status(status_code: int) -> bool:
    """Determina se status HTTP permite retry (429 ou 5xx)."""
    return status_code == 429 or 500 <= status_code < 600


def _calculate_backoff(attempt: int, base_seconds: float, max_seconds: float) -> float:
    return min((2**attempt) * base_seconds, max_seconds)


def _log_transient_error(msg: str, method: str, url: str, attempt: int, error: str) -> None:
    logger.warning(
        msg,
        extra={
            "method": method,
            "url": _sanitize_url(url),
            "attempt": attempt + 1,
            "error": error,
        },
    )


def _handle_transient_exception(
    exc: Exception,
    method: str,
    url: str,
    attempt: int,
) -> HttpError:
    """Converte timeout/erro de conexão em HttpError retentável."""
    if isinstance(exc, httpx.TimeoutException):
        _log_transient_error("Timeout em requisição HTTP", method, url, attempt, str(exc))
        return HttpError("Timeout", is_retryable=True)

    if isinstance(exc, httpx.TransportError):
        _log_transient_error("Erro de conexão HTTP", method, url, attempt, str(exc))
        return HttpError("Erro de conexão", is_retryable=True)

    logger.error(
        "Erro inesperado em requisição HTTP",
        extra={
            "method": method,
            "url": _sanitize_url(url),
            "error_type": type(exc).__name__,
        },
    )
    raise HttpError(f"Erro inesperado: {type(exc).__name__}") from exc


class HttpClient:
    """Cliente HTTP assíncrono compartilhado.

    Uso típico:
        async with HttpClient(config) as client:
            response = await client.post(url, json=payload)

    `transport` permite injetar httpx.MockTransport em testes.
    """

    def __init__(
        self,
        config: HttpClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or HttpClientConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Retorna cliente httpx (lazy loading)."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.timeout_seconds),
                headers=self._config.default_headers,
                verify=self._config.verify_ssl,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Fecha o cliente e libera conexões."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Executa a requisição, com retry apenas se configurado.

        Raises:
            HttpError: status não-2xx ou falha de transporte
        """
        client = await self._get_client()
        cfg = self._config
        last_error: HttpError | None = None

        for attempt in range(cfg.max_retries + 1):
            logger.debug(
                "Executando requisição HTTP",
                extra={"method": method, "url": _sanitize_url(url), "attempt": attempt + 1},
            )
            try:
                response = await client.request(method, url, **kwargs)
            except httpx.HTTPError as exc:
                last_error = _handle_transient_exception(exc, method, url, attempt)
            else:
                if response.is_success:
                    logger.debug(
                        "Requisição HTTP bem-sucedida",
                        extra={
                            "method": method,
                            "url": _sanitize_url(url),
                            "status_code": response.status_code,
                        },
                    )
                    return response

                retryable = _is_retryable_status(response.status_code)
                logger.warning(
                    "Requisição HTTP falhou",
                    extra={
                        "method": method,
                        "url": _sanitize_url(url),
                        "status_code": response.status_code,
                        "is_retryable": retryable,
                    },
                )
                last_error = HttpError(
                    f"HTTP {response.status_code}",
                    status_code=response.status_code,
                    is_retryable=retryable,
                )
                if not retryable:
                    raise last_error

            if attempt < cfg.max_retries:
                backoff = _calculate_backoff(
                    attempt, cfg.backoff_base_seconds, cfg.backoff_max_seconds
                )
                logger.info(
                    "Aguardando backoff antes de retry",
                    extra={"backoff_seconds": backoff, "next_attempt": attempt + 2},
                )
                await asyncio.sleep(backoff)

        raise last_error or HttpError("Falha após todos os retries")

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._request("GET", url, **kwargs)

    async def post(
        self,
        url: str,
        json: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        return await self._request("POST", url, json=json, **kwargs)


def create_http_client(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HttpClient:
    """Factory para criar cliente HTTP configurado.

    Args:
        settings: Configurações da aplicação. Se None, usa get_settings()
        transport: Transport httpx alternativo (testes)
    """
    if settings is None:
        from note_tweet_connector.config.settings import get_settings

        settings = get_settings()

    config = HttpClientConfig(
        timeout_seconds=float(settings.http_timeout_seconds),
        max_retries=settings.http_max_retries,
        backoff_base_seconds=float(settings.http_retry_backoff_seconds),
        default_headers={
            "User-Agent": f"{settings.service_name}/{settings.version}",
        },
    )

    logger.info(
        "Cliente HTTP criado",
        extra={
            "timeout_seconds": config.timeout_seconds,
            "max_retries": config.max_retries,
        },
    )

    return HttpClient(config, transport=transport)
