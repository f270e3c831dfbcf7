"""Camada de infraestrutura.

- ContentTracker: dedupe em memória com TTL e varredura periódica
- HttpClient: cliente httpx compartilhado pelos adapters outbound

Infraestrutura não decide regra de negócio.
"""

from note_tweet_connector.infra.content_tracker import ContentTracker, create_content_tracker
from note_tweet_connector.infra.http import (
    HttpClient,
    HttpClientConfig,
    HttpError,
    create_http_client,
)

__all__ = [
    "ContentTracker",
    "create_content_tracker",
    "HttpClient",
    "HttpClientConfig",
    "HttpError",
    "create_http_client",
]
