"""Re-exports dos contratos de domínio para uso por Application."""

from __future__ import annotations

from note_tweet_connector.domain.protocols.posters import NotePoster, TweetPoster

__all__ = [
    "NotePoster",
    "TweetPoster",
]
