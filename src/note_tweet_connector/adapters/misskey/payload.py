"""Decodificação do webhook de notes do Misskey."""

from __future__ import annotations

import json

from pydantic import ValidationError

from note_tweet_connector.domain.errors import PayloadDecodeError
from note_tweet_connector.domain.models import InboundNote, NoteWebhookPayload


def decode_note_payload(raw_body: bytes) -> InboundNote:
    """Extrai a note do envelope `{"server", "body": {"note"}}`.

    O campo `server` do envelope é copiado para a note (usado no permalink).

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
        payload = NoteWebhookPayload.model_validate(data)
    except ValidationError as exc:
        raise PayloadDecodeError(f"Estrutura de note inválida: {exc.error_count()} erro(s)") from exc

    return payload.body.note.model_copy(update={"server": payload.server})
