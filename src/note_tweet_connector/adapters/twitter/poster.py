"""TweetPoster composto: IFTTT para texto, Twitter API para mídia."""

from __future__ import annotations

import logging

from note_tweet_connector.adapters.twitter.ifttt_client import IftttClient
from note_tweet_connector.adapters.twitter.twitter_client import TwitterClient, TwitterMediaError
from note_tweet_connector.domain.errors import DownstreamError
from note_tweet_connector.domain.protocols import TweetPoster
from note_tweet_connector.infra.http import HttpError
from note_tweet_connector.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class CompositeTweetPoster(TweetPoster):
    """Roteia a postagem conforme a presença de imagens.

    Erros de transporte e de mídia viram DownstreamError.
    """

    def __init__(self, ifttt: IftttClient, twitter: TwitterClient) -> None:
        self._ifttt = ifttt
        self._twitter = twitter

    def config_errors(self, with_media: bool) -> list[str]:
        if with_media:
            return self._twitter.config_errors()
        return self._ifttt.config_errors()

    async def post_text(self, text: str) -> None:
        try:
            await self._ifttt.post_text(text)
        except HttpError as exc:
            logger.error(
                "Falha ao publicar tweet via IFTTT",
                extra={"status_code": exc.status_code, "error": str(exc)},
            )
            raise DownstreamError(f"IFTTT: {exc}", status_code=exc.status_code) from exc

    async def post_with_media(self, text: str, image_urls: list[str]) -> None:
        try:
            await self._twitter.post_with_media(text, image_urls)
        except HttpError as exc:
            logger.error(
                "Falha ao publicar tweet com mídia",
                extra={"status_code": exc.status_code, "error": str(exc)},
            )
            raise DownstreamError(f"Twitter: {exc}", status_code=exc.status_code) from exc
        except TwitterMediaError as exc:
            logger.error("Mídia rejeitada", extra={"error": str(exc)})
            raise DownstreamError(f"Twitter: {exc}") from exc
