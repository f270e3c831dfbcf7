"""Cliente Twitter API (OAuth 1.0a): tweets com imagens.

Fluxo de `post_with_media`:
1. Valida cada URL de mídia (https + host MISSKEY_MEDIA_HOST)
2. Baixa a imagem e envia para media/upload (v1.1, multipart `media`)
3. Publica o tweet na API v2 com os `media_ids` obtidos

A validação de host impede que o serviço seja usado para buscar URLs
arbitrárias (SSRF).
"""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

from authlib.integrations.httpx_client import OAuth1Auth

from note_tweet_connector.config.settings import (
    TWITTER_MANAGE_TWEET_URL,
    TWITTER_UPLOAD_MEDIA_URL,
)
from note_tweet_connector.infra.http import HttpClient
from note_tweet_connector.observability.logging import get_logger, text_preview

logger: logging.Logger = get_logger(__name__)

MAX_MEDIA_ATTACHMENTS = 4


class TwitterMediaError(Exception):
    """URL de mídia rejeitada ou resposta de upload inválida."""


def validate_media_url(url: str, media_host: str | None) -> None:
    """Aceita apenas https no host de mídia configurado.

    Raises:
        TwitterMediaError: URL fora da política
    """
    if not media_host:
        raise TwitterMediaError("MISSKEY_MEDIA_HOST não configurado")

    parsed = urlsplit(url)
    if parsed.scheme != "https":
        raise TwitterMediaError("Apenas URLs https são permitidas")

    host = parsed.netloc.lower()
    if host != media_host.lower():
        raise TwitterMediaError(f"Host {host!r} não permitido (esperado {media_host!r})")


class TwitterClient:
    """Publica tweets com mídia assinando as chamadas com OAuth 1.0a."""

    def __init__(
        self,
        http_client: HttpClient,
        api_key: str | None,
        api_key_secret: str | None,
        access_token: str | None,
        access_token_secret: str | None,
        media_host: str | None,
    ) -> None:
        self._http = http_client
        self._credentials = (api_key, api_key_secret, access_token, access_token_secret)
        self._media_host = media_host
        self._auth: OAuth1Auth | None = None

    def config_errors(self) -> list[str]:
        names = ("API_KEY", "API_KEY_SECRET", "ACCESS_TOKEN", "ACCESS_TOKEN_SECRET")
        missing = [name for name, value in zip(names, self._credentials) if not value]
        errors: list[str] = []
        if missing:
            errors.append(f"Variáveis da Twitter API ausentes: {', '.join(missing)}")
        if not self._media_host:
            errors.append("MISSKEY_MEDIA_HOST não configurado")
        return errors

    def _get_auth(self) -> OAuth1Auth:
        if self._auth is None:
            api_key, api_key_secret, access_token, access_token_secret = self._credentials
            self._auth = OAuth1Auth(
                client_id=api_key,
                client_secret=api_key_secret,
                token=access_token,
                token_secret=access_token_secret,
                force_include_body=True,
            )
        return self._auth

    async def upload_media_from_url(self, url: str) -> str:
        """Baixa a imagem e faz upload; retorna `media_id_string`.

        Raises:
            TwitterMediaError: URL rejeitada ou resposta sem media id
            HttpError: falha no download ou no upload
        """
        validate_media_url(url, self._media_host)

        download = await self._http.get(url)
        upload = await self._http.post(
            TWITTER_UPLOAD_MEDIA_URL,
            files={"media": ("image", download.content)},
            auth=self._get_auth(),
        )

        try:
            data = upload.json()
        except ValueError as exc:
            raise TwitterMediaError("Resposta de upload não é JSON") from exc
        media_id = data.get("media_id_string") if isinstance(data, dict) else None
        if not media_id:
            raise TwitterMediaError("Resposta de upload sem media_id_string")

        logger.debug("twitter_media_uploaded", extra={"media_id": media_id})
        return str(media_id)

    async def post_with_media(self, text: str, image_urls: list[str]) -> int:
        """Publica o tweet com até MAX_MEDIA_ATTACHMENTS imagens.

        Returns:
            Quantidade de imagens anexadas
        """
        media_ids = [
            await self.upload_media_from_url(url) for url in image_urls[:MAX_MEDIA_ATTACHMENTS]
        ]

        body: dict[str, object] = {"text": text}
        if media_ids:
            body["media"] = {"media_ids": media_ids}

        await self._http.post(TWITTER_MANAGE_TWEET_URL, json=body, auth=self._get_auth())

        logger.info(
            "Tweet com mídia publicado",
            extra={"media_count": len(media_ids), "text_preview": text_preview(text)},
        )
        return len(media_ids)
