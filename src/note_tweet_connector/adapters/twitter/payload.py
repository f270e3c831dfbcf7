"""Decodificação do webhook de tweets enviado pelo IFTTT."""

from __future__ import annotations

import json

from pydantic import ValidationError

from note_tweet_connector.domain.errors import PayloadDecodeError
from note_tweet_connector.domain.models import InboundTweet, TweetWebhookPayload


def decode_tweet_payload(raw_body: bytes) -> InboundTweet:
    """Extrai o tweet do envelope `{"body": {"tweet": {"text", "url"}}}`.

    Raises:
        PayloadDecodeError: JSON inválido ou estrutura incompatível
    """
    try:
        data = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise PayloadDecodeError(f"JSON inválido: {exc}") from exc

    if not isinstance(data, dict):
        raise PayloadDecodeError("Payload deve ser um objeto JSON")

    try:
        return TweetWebhookPayload.model_validate(data).body.tweet
    except ValidationError as exc:
        raise PayloadDecodeError(f"Estrutura de tweet inválida: {exc.error_count()} erro(s)") from exc
