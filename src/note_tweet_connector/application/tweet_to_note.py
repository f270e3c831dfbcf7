"""Relay tweet → note.

Metade complementar da prevenção de loop: tweets que começam com o
marcador de renote gerado pelo relay note → tweet nunca voltam ao Misskey.
"""

from __future__ import annotations

import asyncio
import logging
import re

from note_tweet_connector.adapters.twitter.payload import decode_tweet_payload
from note_tweet_connector.application.note_to_tweet import RETWEET_PATTERN
from note_tweet_connector.domain.enums import RelayDirection, SkipReason
from note_tweet_connector.domain.errors import DownstreamError, PayloadDecodeError, RelayConfigError
from note_tweet_connector.domain.models import InboundTweet, RelayResult
from note_tweet_connector.domain.protocols import NotePoster
from note_tweet_connector.infra.content_tracker import ContentTracker
from note_tweet_connector.observability.logging import get_logger, text_preview
from note_tweet_connector.observability.metrics import RelayMetrics

logger: logging.Logger = get_logger(__name__)

RENOTE_MARKER_PATTERN = re.compile(r"^RN\s*\[at\]")


def derive_note_text(tweet: InboundTweet) -> str:
    """Retweets ganham o link do tweet original ao final."""
    text = tweet.text or ""
    if RETWEET_PATTERN.match(text):
        return f"{text}\n\n{tweet.url or ''}"
    return text


class TweetToNoteRelay:
    """Encaminha tweets (via IFTTT) para o Misskey."""

    direction = RelayDirection.TWEET_TO_NOTE

    def __init__(
        self,
        tracker: ContentTracker,
        poster: NotePoster,
        metrics: RelayMetrics,
        post_deadline_seconds: float = 60.0,
    ) -> None:
        self._tracker = tracker
        self._poster = poster
        self._metrics = metrics
        self._post_deadline_seconds = post_deadline_seconds

    def _skip(self, reason: SkipReason, text: str) -> RelayResult:
        logger.info(
            "tweet_skipped",
            extra={"reason": reason.value, "text_preview": text_preview(text, limit=50)},
        )
        self._metrics.record_skip(self.direction, reason)
        return RelayResult.skipped(self.direction, reason)

    async def handle(self, raw_body: bytes) -> RelayResult:
        """Processa um webhook de tweet.

        Raises:
            PayloadDecodeError: payload malformado
            RelayConfigError: MISSKEY_HOST/MISSKEY_TOKEN ausentes
            DownstreamError: a criação da note falhou (fingerprint permanece marcado)
        """
        self._metrics.record_attempt(self.direction)

        try:
            tweet = decode_tweet_payload(raw_body)
        except PayloadDecodeError as exc:
            logger.error("tweet_payload_invalid", extra={"error": str(exc)})
            self._metrics.record_error(self.direction)
            raise

        text = derive_note_text(tweet)

        if RENOTE_MARKER_PATTERN.match(text):
            return self._skip(SkipReason.LOOP_PATTERN, text)

        config_errors = self._poster.config_errors()
        if config_errors:
            logger.error("note_poster_misconfigured", extra={"errors": config_errors})
            self._metrics.record_error(self.direction)
            raise RelayConfigError(config_errors)

        if not self._tracker.check_and_mark(text):
            return self._skip(SkipReason.DUPLICATE, text)

        try:
            async with asyncio.timeout(self._post_deadline_seconds):
                await self._poster.create_note(text)
        except TimeoutError as exc:
            logger.error("tweet_forward_failed", extra={"error": "deadline_exceeded"})
            self._metrics.record_error(self.direction)
            raise DownstreamError("Prazo de postagem excedido") from exc
        except DownstreamError as exc:
            logger.error("tweet_forward_failed", extra={"error": str(exc)})
            self._metrics.record_error(self.direction)
            raise

        logger.info(
            "tweet_forwarded",
            extra={"text_preview": text_preview(text), "tweet_url": tweet.url},
        )
        self._metrics.record_success(self.direction)
        return RelayResult.forwarded(self.direction)
