"""Configurações da aplicação via variáveis de ambiente.

Todas as configurações são carregadas de env vars (ou de um arquivo .env
local). Nunca hardcode secrets ou tokens das plataformas.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from note_tweet_connector import __version__

# -----------------------------------------------------------------------------
# Endpoints externos (IFTTT, Twitter API v1.1/v2, Misskey)
# -----------------------------------------------------------------------------
IFTTT_TRIGGER_URL: str = "https://maker.ifttt.com/trigger/{event}/with/key/{key}"
TWITTER_UPLOAD_MEDIA_URL: str = "https://upload.twitter.com/1.1/media/upload.json"
TWITTER_MANAGE_TWEET_URL: str = "https://api.twitter.com/2/tweets"
MISSKEY_CREATE_NOTE_PATH: str = "/api/notes/create"


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Aplicação
    service_name: str = "note-tweet-connector"
    version: str = __version__
    log_level: str = "INFO"
    log_format: str = "json"  # json | text
    listen_host: str = "0.0.0.0"
    port: int = 8080
    metrics_port: int | None = 9090  # Listener separado do /metrics; None desliga
    shutdown_timeout_seconds: float = 30.0  # Janela de graceful shutdown

    # Rastreador de conteúdo (dedupe em memória)
    tracker_expiry_seconds: float = 5 * 60 * 60  # 5 horas
    tracker_sweep_interval_seconds: float = 60.0

    # Segredos dos webhooks inbound
    misskey_hook_secret: str | None = None  # Header X-Misskey-Hook-Secret
    ifttt_hook_secret: str | None = None  # Header X-IFTTT-Hook-Secret

    # Destino Misskey (tweet → note)
    misskey_host: str | None = None  # Também usado como host padrão de renotes
    misskey_token: str | None = None
    misskey_media_host: str | None = None  # Host permitido para download de mídia

    # IFTTT (note → tweet, apenas texto)
    ifttt_event: str | None = None
    ifttt_key: str | None = None

    # Twitter API (note → tweet, com mídia; OAuth 1.0a)
    api_key: str | None = None
    api_key_secret: str | None = None
    access_token: str | None = None
    access_token_secret: str | None = None

    # HTTP outbound
    http_timeout_seconds: float = 30.0
    http_max_retries: int = 0  # Postagens nunca são repetidas automaticamente
    http_retry_backoff_seconds: float = 2.0
    post_deadline_seconds: float = 60.0  # Prazo total de uma postagem (inclui uploads)

    def validate_tracker_config(self) -> list[str]:
        """Valida TTL e intervalo de varredura do rastreador.

        Retorna lista de erros (vazia = tudo OK).
        """
        errors: list[str] = []
        if self.tracker_expiry_seconds <= 0:
            errors.append("TRACKER_EXPIRY_SECONDS deve ser > 0")
        if self.tracker_sweep_interval_seconds <= 0:
            errors.append("TRACKER_SWEEP_INTERVAL_SECONDS deve ser > 0")
        return errors

    def validate_misskey_config(self) -> list[str]:
        """Valida credenciais do destino Misskey (tweet → note)."""
        errors: list[str] = []
        if not self.misskey_host:
            errors.append("MISSKEY_HOST não configurado")
        if not self.misskey_token:
            errors.append("MISSKEY_TOKEN não configurado")
        return errors

    def validate_ifttt_config(self) -> list[str]:
        """Valida credenciais do IFTTT (postagem só de texto)."""
        errors: list[str] = []
        if not self.ifttt_event:
            errors.append("IFTTT_EVENT não configurado")
        if not self.ifttt_key:
            errors.append("IFTTT_KEY não configurado")
        return errors

    def validate_twitter_config(self) -> list[str]:
        """Valida credenciais OAuth 1.0a e host de mídia (postagem com imagens)."""
        errors: list[str] = []
        missing = [
            name.upper()
            for name in ("api_key", "api_key_secret", "access_token", "access_token_secret")
            if not getattr(self, name)
        ]
        if missing:
            errors.append(f"Variáveis da Twitter API ausentes: {', '.join(missing)}")
        if not self.misskey_media_host:
            errors.append("MISSKEY_MEDIA_HOST não configurado")
        return errors


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna uma instância cacheada de Settings.

    A cache garante que mesmo múltiplas injeções não criam novos objetos.
    """
    return Settings()
