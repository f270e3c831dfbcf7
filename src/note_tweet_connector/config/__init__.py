"""Configurações centralizadas do note_tweet_connector.

Este módulo exporta:
- Settings: classe de configuração via variáveis de ambiente
- get_settings: função cacheada para obter instância única
- Endpoints externos usados pelos posters

Uso típico:
    from note_tweet_connector.config import get_settings
"""

from note_tweet_connector.config.settings import (
    IFTTT_TRIGGER_URL,
    MISSKEY_CREATE_NOTE_PATH,
    TWITTER_MANAGE_TWEET_URL,
    TWITTER_UPLOAD_MEDIA_URL,
    Settings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "IFTTT_TRIGGER_URL",
    "MISSKEY_CREATE_NOTE_PATH",
    "TWITTER_MANAGE_TWEET_URL",
    "TWITTER_UPLOAD_MEDIA_URL",
]
