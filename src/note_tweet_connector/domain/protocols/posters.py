"""Contratos dos posters de destino.

O core depende apenas do sucesso/falha da postagem, nunca do transporte.
Implementações devem levantar:
- RelayConfigError quando credenciais obrigatórias estão ausentes
- DownstreamError quando a plataforma de destino rejeita ou falha
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class TweetPoster(ABC):
    """Publica tweets (texto puro ou com imagens)."""

    @abstractmethod
    def config_errors(self, with_media: bool) -> list[str]:
        """Lista de erros de configuração para o caminho pedido (vazia = OK)."""

    @abstractmethod
    async def post_text(self, text: str) -> None:
        """Publica tweet somente texto."""

    @abstractmethod
    async def post_with_media(self, text: str, image_urls: list[str]) -> None:
        """Publica tweet com até MAX_MEDIA_ATTACHMENTS imagens."""


class NotePoster(ABC):
    """Cria notes na instância Misskey de destino."""

    @abstractmethod
    def config_errors(self) -> list[str]:
        """Lista de erros de configuração (vazia = OK)."""

    @abstractmethod
    async def create_note(self, text: str) -> None:
        """Cria uma note pública com o texto dado."""
