"""Relay note → tweet.

Ordem de decisão (um payload por chamada):
1. decode (PayloadDecodeError)
2. texto canônico (CW redigido, marcador de renote ou texto original)
3. padrão de loop `RT @` → skip loop-pattern
4. visibilidade diferente de public → skip not-public
5. configuração do poster ausente → RelayConfigError
6. check_and_mark → skip duplicate
7. postagem (texto via IFTTT, imagens via Twitter API)

Skips acontecem antes do check_and_mark, então conteúdo não encaminhável
nunca ocupa um slot de dedupe. Falha na postagem mantém o fingerprint
marcado.
"""

from __future__ import annotations

import asyncio
import logging
import re

from note_tweet_connector.adapters.misskey.payload import decode_note_payload
from note_tweet_connector.adapters.twitter.twitter_client import MAX_MEDIA_ATTACHMENTS
from note_tweet_connector.domain.enums import RelayDirection, SkipReason
from note_tweet_connector.domain.errors import DownstreamError, PayloadDecodeError, RelayConfigError
from note_tweet_connector.domain.models import InboundNote, RelayResult
from note_tweet_connector.domain.protocols import TweetPoster
from note_tweet_connector.infra.content_tracker import ContentTracker
from note_tweet_connector.observability.logging import get_logger, text_preview
from note_tweet_connector.observability.metrics import RelayMetrics

logger: logging.Logger = get_logger(__name__)

RETWEET_PATTERN = re.compile(r"^RT\s*@")

CW_MASK_CHAR = "○"
RENOTE_MARKER_PREFIX = "RN [at]"


def _is_blank(text: str | None) -> bool:
    return text is None or text == "" or text == "null"


def build_renote_marker(note: InboundNote, default_host: str | None) -> str:
    """Texto sintetizado para renotes sem texto próprio.

    Formato: `RN [at]user[at]host\\n\\n<texto do renote>\\n\\n<uri do renote>`.
    """
    renote = note.renote
    if renote is None:
        return ""
    host = renote.user.host or default_host or ""
    return (
        f"{RENOTE_MARKER_PREFIX}{renote.user.username or ''}[at]{host}"
        f"\n\n{renote.text or ''}\n\n{renote.uri or ''}"
    )


def derive_canonical_text(note: InboundNote, default_host: str | None) -> str:
    """Texto que será comparado, deduplicado e publicado.

    - CW presente: o CW, uma máscara de `○` do tamanho do texto e o permalink
    - sem texto, sem arquivos e com renote: marcador de renote
    - caso contrário: o texto original
    """
    text = note.text or ""

    if note.cw:
        return f"{note.cw}\n{CW_MASK_CHAR * len(text)}\n{note.permalink}"

    if _is_blank(note.text) and not note.files and note.renote is not None:
        return build_renote_marker(note, default_host)

    return text


class NoteToTweetRelay:
    """Encaminha notes públicas do Misskey para o Twitter."""

    direction = RelayDirection.NOTE_TO_TWEET

    def __init__(
        self,
        tracker: ContentTracker,
        poster: TweetPoster,
        metrics: RelayMetrics,
        default_host: str | None = None,
        post_deadline_seconds: float = 60.0,
    ) -> None:
        self._tracker = tracker
        self._poster = poster
        self._metrics = metrics
        self._default_host = default_host
        self._post_deadline_seconds = post_deadline_seconds

    def _skip(self, reason: SkipReason, note: InboundNote, text: str) -> RelayResult:
        logger.info(
            "note_skipped",
            extra={
                "note_id": note.id,
                "reason": reason.value,
                "visibility": note.visibility,
                "text_preview": text_preview(text, limit=50),
            },
        )
        self._metrics.record_skip(self.direction, reason)
        return RelayResult.skipped(self.direction, reason)

    async def handle(self, raw_body: bytes) -> RelayResult:
        """Processa um webhook de note.

        Raises:
            PayloadDecodeError: payload malformado
            RelayConfigError: credenciais do poster ausentes
            DownstreamError: a postagem falhou (fingerprint permanece marcado)
        """
        self._metrics.record_attempt(self.direction)

        try:
            note = decode_note_payload(raw_body)
        except PayloadDecodeError as exc:
            logger.error("note_payload_invalid", extra={"error": str(exc)})
            self._metrics.record_error(self.direction)
            raise

        text = derive_canonical_text(note, self._default_host)

        if RETWEET_PATTERN.match(text):
            return self._skip(SkipReason.LOOP_PATTERN, note, text)

        if not note.is_public:
            return self._skip(SkipReason.NOT_PUBLIC, note, text)

        image_urls = note.image_urls[:MAX_MEDIA_ATTACHMENTS]
        config_errors = self._poster.config_errors(with_media=bool(image_urls))
        if config_errors:
            logger.error(
                "tweet_poster_misconfigured",
                extra={"note_id": note.id, "errors": config_errors},
            )
            self._metrics.record_error(self.direction)
            raise RelayConfigError(config_errors)

        if not self._tracker.check_and_mark(text):
            return self._skip(SkipReason.DUPLICATE, note, text)

        try:
            async with asyncio.timeout(self._post_deadline_seconds):
                if image_urls:
                    await self._poster.post_with_media(text, image_urls)
                else:
                    await self._poster.post_text(text)
        except TimeoutError as exc:
            logger.error(
                "note_forward_failed",
                extra={"note_id": note.id, "error": "deadline_exceeded"},
            )
            self._metrics.record_error(self.direction)
            raise DownstreamError("Prazo de postagem excedido") from exc
        except DownstreamError as exc:
            logger.error(
                "note_forward_failed",
                extra={"note_id": note.id, "error": str(exc)},
            )
            self._metrics.record_error(self.direction)
            raise

        logger.info(
            "note_forwarded",
            extra={
                "note_id": note.id,
                "text_preview": text_preview(text),
                "has_media": bool(image_urls),
                "media_count": len(image_urls),
            },
        )
        self._metrics.record_success(self.direction)
        return RelayResult.forwarded(self.direction, media_count=len(image_urls))
