"""Rastreador de conteúdo (dedupe em memória com TTL).

Guarda fingerprints de conteúdo já encaminhado para impedir loops
note → tweet → note e reentregas do mesmo webhook.

Garantias:
- check_and_mark é atômico: para N chamadas concorrentes com o mesmo texto,
  exatamente uma retorna True
- Entradas expiram após `ttl_seconds`; a varredura periódica remove no máximo
  um intervalo de varredura depois disso
- Nenhuma operação levanta exceção (texto vazio é conteúdo válido)

O estado não persiste entre restarts e não é compartilhado entre instâncias.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from note_tweet_connector.domain.normalization import fingerprint
from note_tweet_connector.observability.logging import get_logger

if TYPE_CHECKING:
    from note_tweet_connector.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


class ContentTracker:
    """Mapa fingerprint → instante da primeira marcação.

    Seções críticas usam threading.Lock e nunca aguardam I/O; o rastreador
    pode ser usado tanto por tasks asyncio quanto por threads.
    """

    def __init__(
        self,
        ttl_seconds: float,
        sweep_interval_seconds: float = 60.0,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds deve ser > 0")
        if sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds deve ser > 0")
        self._ttl_seconds = ttl_seconds
        self._sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock or time.monotonic
        self._entries: dict[str, float] = {}
        self._lock = threading.Lock()
        self._stop_event: asyncio.Event | None = None
        self._sweep_task: asyncio.Task[None] | None = None

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    @property
    def is_running(self) -> bool:
        """True enquanto a task de varredura está ativa."""
        return self._sweep_task is not None and not self._sweep_task.done()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def check_and_mark(self, text: str) -> bool:
        """Marca o conteúdo se ainda não visto.

        Returns:
            True se o conteúdo é novo (e foi marcado agora)
            False se já estava marcado (duplicado)
        """
        key = fingerprint(text)
        with self._lock:
            if key in self._entries:
                is_new = False
            else:
                self._entries[key] = self._clock()
                is_new = True

        logger.debug(
            "tracker_check",
            extra={"fingerprint": key[:16], "is_duplicate": not is_new},
        )
        return is_new

    def is_marked(self, text: str) -> bool:
        """Apenas verifica, sem marcar."""
        key = fingerprint(text)
        with self._lock:
            return key in self._entries

    def sweep(self) -> int:
        """Remove entradas mais velhas que o TTL.

        Cada remoção recheca a idade sob o lock, então uma marcação
        concorrente nunca é apagada antes do tempo.

        Returns:
            Quantidade de entradas removidas
        """
        with self._lock:
            keys = list(self._entries)

        removed = 0
        for key in keys:
            with self._lock:
                marked_at = self._entries.get(key)
                if marked_at is None:
                    continue
                if self._clock() - marked_at > self._ttl_seconds:
                    del self._entries[key]
                    removed += 1

        if removed:
            logger.debug(
                "tracker_sweep",
                extra={"removed": removed, "remaining": len(self)},
            )
        return removed

    async def start(self) -> None:
        """Inicia a varredura periódica no event loop corrente."""
        if self.is_running:
            return
        self._stop_event = asyncio.Event()
        self._sweep_task = asyncio.create_task(self._run_sweeper(self._stop_event))
        logger.info(
            "Rastreador de conteúdo iniciado",
            extra={
                "ttl_seconds": self._ttl_seconds,
                "sweep_interval_seconds": self._sweep_interval_seconds,
            },
        )

    async def stop(self) -> None:
        """Sinaliza parada e aguarda a task de varredura terminar."""
        task = self._sweep_task
        if task is None:
            return
        if self._stop_event is not None:
            self._stop_event.set()
        try:
            await task
        except asyncio.CancelledError:
            # Só absorve o cancelamento da própria task de varredura
            current = asyncio.current_task()
            if not task.cancelled() or (current is not None and current.cancelling()):
                raise
        self._sweep_task = None
        self._stop_event = None
        logger.info("Rastreador de conteúdo parado", extra={"entries": len(self)})

    async def _run_sweeper(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(stop_event.wait(), timeout=self._sweep_interval_seconds)
            if stop_event.is_set():
                break
            self.sweep()


def create_content_tracker(settings: Settings | None = None) -> ContentTracker:
    """Factory para criar o rastreador conforme settings.

    Args:
        settings: Configurações da aplicação. Se None, usa get_settings()
    """
    if settings is None:
        from note_tweet_connector.config.settings import get_settings

        settings = get_settings()

    return ContentTracker(
        ttl_seconds=settings.tracker_expiry_seconds,
        sweep_interval_seconds=settings.tracker_sweep_interval_seconds,
    )
