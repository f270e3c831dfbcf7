"""Cliente Misskey: criação de notes (destino tweet → note)."""

from __future__ import annotations

import logging

from note_tweet_connector.config.settings import MISSKEY_CREATE_NOTE_PATH
from note_tweet_connector.domain.errors import DownstreamError
from note_tweet_connector.domain.protocols import NotePoster
from note_tweet_connector.infra.http import HttpClient, HttpError
from note_tweet_connector.observability.logging import get_logger, text_preview

logger: logging.Logger = get_logger(__name__)


class MisskeyClient(NotePoster):
    """Publica notes via `POST https://{host}/api/notes/create`.

    O token vai no corpo (`"i"`), como exige a API do Misskey.
    """

    def __init__(self, http_client: HttpClient, host: str | None, token: str | None) -> None:
        self._http = http_client
        self._host = host
        self._token = token

    @property
    def endpoint(self) -> str:
        return f"https://{self._host}{MISSKEY_CREATE_NOTE_PATH}"

    def config_errors(self) -> list[str]:
        errors: list[str] = []
        if not self._host:
            errors.append("MISSKEY_HOST não configurado")
        if not self._token:
            errors.append("MISSKEY_TOKEN não configurado")
        return errors

    async def create_note(self, text: str) -> None:
        """Cria a note.

        Raises:
            DownstreamError: resposta não-2xx ou falha de transporte
        """
        try:
            response = await self._http.post(self.endpoint, json={"i": self._token, "text": text})
        except HttpError as exc:
            logger.error(
                "Falha ao criar note no Misskey",
                extra={"host": self._host, "status_code": exc.status_code, "error": str(exc)},
            )
            raise DownstreamError(f"Misskey: {exc}", status_code=exc.status_code) from exc

        logger.debug(
            "Note criada no Misskey",
            extra={
                "host": self._host,
                "status_code": response.status_code,
                "text_preview": text_preview(text),
            },
        )
