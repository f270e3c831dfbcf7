"""Erros do relay.

Taxonomia:
- PayloadDecodeError: payload inbound malformado (não retentável)
- DownstreamError: o poster de destino falhou (claim de dedupe mantido)
- RelayConfigError: credenciais/host ausentes para o caminho requisitado

Skips não são erros; são retornados como RelayResult.
"""

from __future__ import annotations


class RelayError(Exception):
    """Base para erros do relay."""


class PayloadDecodeError(RelayError):
    """Payload do webhook não pôde ser decodificado."""


class DownstreamError(RelayError):
    """Falha na chamada à plataforma de destino."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RelayConfigError(RelayError):
    """Configuração obrigatória ausente (fatal apenas para a requisição)."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors
