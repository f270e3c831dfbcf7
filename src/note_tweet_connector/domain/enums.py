"""Enums de domínio: direções do relay, visibilidade e motivos de skip."""

from __future__ import annotations

from enum import StrEnum


class RelayDirection(StrEnum):
    """Direções suportadas pelo relay."""

    NOTE_TO_TWEET = "note2tweet"
    TWEET_TO_NOTE = "tweet2note"


class Visibility(StrEnum):
    """Visibilidades conhecidas de uma note.

    A plataforma pode enviar outros valores; qualquer valor diferente de
    PUBLIC é tratado como não público.
    """

    PUBLIC = "public"
    HOME = "home"
    FOLLOWERS = "followers"
    SPECIFIED = "specified"


class SkipReason(StrEnum):
    """Motivos de skip (desfecho intencional, não é erro)."""

    LOOP_PATTERN = "loop-pattern"
    NOT_PUBLIC = "not-public"
    DUPLICATE = "duplicate"


class RelayStatus(StrEnum):
    """Desfechos terminais de um payload processado sem erro."""

    FORWARDED = "forwarded"
    SKIPPED = "skipped"
