"""Cliente IFTTT Webhooks: tweets somente texto."""

from __future__ import annotations

import logging

from note_tweet_connector.config.settings import IFTTT_TRIGGER_URL
from note_tweet_connector.infra.http import HttpClient, HttpError
from note_tweet_connector.observability.logging import get_logger, text_preview

logger: logging.Logger = get_logger(__name__)


class IftttClient:
    """Dispara o applet IFTTT que publica o tweet (`value1` = texto)."""

    def __init__(self, http_client: HttpClient, event: str | None, key: str | None) -> None:
        self._http = http_client
        self._event = event
        self._key = key

    def config_errors(self) -> list[str]:
        errors: list[str] = []
        if not self._event:
            errors.append("IFTTT_EVENT não configurado")
        if not self._key:
            errors.append("IFTTT_KEY não configurado")
        return errors

    async def post_text(self, text: str) -> None:
        """Publica o texto.

        Raises:
            HttpError: status diferente de 200 ou falha de transporte
        """
        url = IFTTT_TRIGGER_URL.format(event=self._event, key=self._key)
        response = await self._http.post(url, json={"value1": text})
        # Somente 200 é sucesso para o IFTTT
        if response.status_code != 200:
            raise HttpError(f"HTTP {response.status_code}", status_code=response.status_code)

        logger.info(
            "Tweet publicado via IFTTT",
            extra={"event": self._event, "text_preview": text_preview(text)},
        )
