"""Normalização de texto e fingerprint de conteúdo.

A chave de comparação é o SHA-256 do texto canonicalizado. Cada etapa é uma
função pura, aplicada nesta ordem:

1. lowercase
2. quebras de linha viram espaço
3. remoção de URLs http(s) (encurtadores reescrevem links por post)
4. colapso de espaços e trim
5. truncamento em MAX_CONTENT_LENGTH code points
"""

from __future__ import annotations

import hashlib
import re

# Medido após as etapas anteriores; absorve assinaturas que a plataforma
# anexa ao final de posts de resto idênticos.
MAX_CONTENT_LENGTH = 280

_NEWLINE_PATTERN = re.compile(r"\r\n|\r|\n")
_URL_PATTERN = re.compile(r"https?://\S+")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def truncate_code_points(text: str, max_length: int) -> str:
    """Trunca por code point (nunca por byte)."""
    if max_length <= 0:
        return ""
    return text[:max_length]


def normalize(text: str) -> str:
    """Canonicaliza texto para comparação entre plataformas."""
    normalized = text.lower()
    normalized = _NEWLINE_PATTERN.sub(" ", normalized)
    normalized = _URL_PATTERN.sub("", normalized)
    normalized = _WHITESPACE_PATTERN.sub(" ", normalized).strip()
    return truncate_code_points(normalized, MAX_CONTENT_LENGTH)


def fingerprint(text: str) -> str:
    """Retorna o fingerprint (SHA-256 hex) do texto normalizado.

    Texto vazio é conteúdo válido e tem fingerprint estável.
    """
    return hashlib.sha256(normalize(text).encode("utf-8")).hexdigest()
