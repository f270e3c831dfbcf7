"""Dependências injetadas nas rotas."""

from __future__ import annotations

from fastapi import Request

from note_tweet_connector.application.note_to_tweet import NoteToTweetRelay
from note_tweet_connector.application.tweet_to_note import TweetToNoteRelay
from note_tweet_connector.config.settings import Settings
from note_tweet_connector.observability.metrics import RelayMetrics


def get_settings(request: Request) -> Settings:
    """Retorna settings da aplicação."""

    return request.app.state.settings


def get_metrics(request: Request) -> RelayMetrics:
    return request.app.state.metrics


def get_note_to_tweet_relay(request: Request) -> NoteToTweetRelay:
    """Retorna o relay note → tweet."""

    return request.app.state.note_to_tweet


def get_tweet_to_note_relay(request: Request) -> TweetToNoteRelay:
    """Retorna o relay tweet → note."""

    return request.app.state.tweet_to_note
