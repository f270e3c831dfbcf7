"""Validação do segredo compartilhado dos webhooks (Misskey e IFTTT)."""

from __future__ import annotations

import hmac
from collections.abc import Mapping
from dataclasses import dataclass

MISSKEY_SECRET_HEADER = "x-misskey-hook-secret"
IFTTT_SECRET_HEADER = "x-ifttt-hook-secret"


@dataclass(slots=True)
class SecretCheckResult:
    """Resultado da validação do segredo."""

    valid: bool
    error: str | None = None


def verify_hook_secret(
    headers: Mapping[str, str],
    header_name: str,
    expected: str | None,
) -> SecretCheckResult:
    """Compara o header de segredo com o valor configurado.

    Segredo não configurado rejeita a requisição (fail-closed).
    """

    if not expected:
        return SecretCheckResult(valid=False, error="secret_not_configured")

    provided = headers.get(header_name)
    if not provided:
        return SecretCheckResult(valid=False, error="missing_secret")

    if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
        return SecretCheckResult(valid=False, error="secret_mismatch")

    return SecretCheckResult(valid=True)
