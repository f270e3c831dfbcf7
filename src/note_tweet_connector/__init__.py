"""Relay bidirecional de webhooks entre Misskey (notes) e Twitter (tweets)."""

__version__ = "2.0.1"
