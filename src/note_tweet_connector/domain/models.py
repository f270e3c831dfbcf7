"""Modelos de domínio (payloads inbound e resultado do relay).

Responsabilidade:
- Estruturar os payloads dos webhooks (note e tweet) como views tipadas
- Ignorar campos desconhecidos (payloads completos trazem dezenas de campos)
- Representar o desfecho de um payload (forward ou skip com motivo)
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, field_validator

from note_tweet_connector.domain.enums import RelayDirection, RelayStatus, SkipReason, Visibility


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class NoteFile(_Lenient):
    """Arquivo anexado a uma note (apenas url e MIME type são usados)."""

    url: str | None = None
    type: str | None = None  # MIME type, ex.: image/png

    @property
    def is_image(self) -> bool:
        return bool(self.url) and "image" in (self.type or "")


class RenoteUser(_Lenient):
    host: str | None = None  # None para usuários locais
    username: str | None = None


class Renote(_Lenient):
    """Note referenciada por um renote."""

    id: str | None = None
    uri: str | None = None  # None para notes locais
    text: str | None = None
    user: RenoteUser = Field(default_factory=RenoteUser)

    @field_validator("user", mode="before")
    @classmethod
    def _null_user(cls, value: object) -> object:
        return {} if value is None else value


class InboundNote(_Lenient):
    """View tipada de uma note recebida via webhook.

    `server` vem do envelope do webhook, não do objeto note.
    """

    server: str = ""
    id: str = ""
    visibility: str = ""
    local_only: bool = Field(default=False, alias="localOnly")
    text: str | None = None
    cw: str | None = None
    files: list[NoteFile] = Field(default_factory=list)
    renote: Renote | None = None

    @field_validator("id", "visibility", mode="before")
    @classmethod
    def _null_as_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("files", mode="before")
    @classmethod
    def _null_as_no_files(cls, value: object) -> object:
        return [] if value is None else value

    @property
    def is_public(self) -> bool:
        return self.visibility == Visibility.PUBLIC

    @property
    def permalink(self) -> str:
        """URL da note na instância de origem."""
        return f"{self.server}/notes/{self.id}"

    @property
    def image_urls(self) -> list[str]:
        """URLs dos anexos de imagem, na ordem original."""
        return [f.url for f in self.files if f.is_image and f.url]


class _NoteBody(_Lenient):
    note: InboundNote = Field(default_factory=InboundNote)


class NoteWebhookPayload(_Lenient):
    """Envelope do webhook de notes: {"server": ..., "body": {"note": {...}}}."""

    server: str = ""
    body: _NoteBody = Field(default_factory=_NoteBody)


class InboundTweet(_Lenient):
    """View tipada de um tweet recebido via IFTTT."""

    text: str | None = None
    url: str | None = None


class _TweetBody(_Lenient):
    tweet: InboundTweet = Field(default_factory=InboundTweet)


class TweetWebhookPayload(_Lenient):
    """Envelope do webhook de tweets: {"body": {"tweet": {...}}}."""

    body: _TweetBody = Field(default_factory=_TweetBody)


@dataclass(slots=True, frozen=True)
class RelayResult:
    """Desfecho de um payload processado sem erro."""

    direction: RelayDirection
    status: RelayStatus
    reason: SkipReason | None = None
    media_count: int = 0

    @classmethod
    def forwarded(cls, direction: RelayDirection, media_count: int = 0) -> RelayResult:
        return cls(direction=direction, status=RelayStatus.FORWARDED, media_count=media_count)

    @classmethod
    def skipped(cls, direction: RelayDirection, reason: SkipReason) -> RelayResult:
        return cls(direction=direction, status=RelayStatus.SKIPPED, reason=reason)

    @property
    def is_skipped(self) -> bool:
        return self.status is RelayStatus.SKIPPED
