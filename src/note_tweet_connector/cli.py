"""Entry point de linha de comando: sobe o servidor uvicorn."""

from __future__ import annotations

import argparse
import os
import re
import sys

import uvicorn

from note_tweet_connector import __version__
from note_tweet_connector.config.settings import Settings, get_settings

_DURATION_PATTERN = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}

# Nomes aceitos em --log-level; "warn" é alias de WARNING
_LOG_LEVELS = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "warning": "WARNING",
    "error": "ERROR",
}


def parse_duration(value: str) -> float:
    """Converte "5h", "1h30m", "90s", "500ms" ou segundos puros em segundos."""
    value = value.strip()
    if value.isdigit():
        return float(value)

    position = 0
    total = 0.0
    for match in _DURATION_PATTERN.finditer(value):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(value):
        raise argparse.ArgumentTypeError(f"duração inválida: {value!r}")
    return total


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="note-tweet-connector",
        description="Relay bidirecional Misskey ↔ Twitter com prevenção de loop",
    )
    parser.add_argument("--host", default=None, help="Endereço de escuta (default: LISTEN_HOST env)")
    parser.add_argument("--port", type=int, default=None, help="Porta HTTP (PORT env tem precedência)")
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=None,
        help="Porta do listener /metrics (default: METRICS_PORT env ou 9090)",
    )
    parser.add_argument(
        "--tracker-expiry",
        type=parse_duration,
        default=None,
        help="Tempo de retenção do conteúdo processado, ex.: 5h, 30m (default: 5h)",
    )
    parser.add_argument(
        "--shutdown-timeout",
        type=parse_duration,
        default=None,
        help="Janela de graceful shutdown, ex.: 30s",
    )
    parser.add_argument(
        "--log-level",
        choices=sorted(_LOG_LEVELS),
        default=None,
        help="Nível de log",
    )
    parser.add_argument("--version", action="store_true", help="Mostra a versão e sai")
    return parser


def resolve_settings(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    """Aplica as flags sobre as settings do ambiente."""
    settings = base or get_settings()
    overrides: dict[str, object] = {}
    if args.host is not None:
        overrides["listen_host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.metrics_port is not None:
        overrides["metrics_port"] = args.metrics_port
    if args.tracker_expiry is not None:
        overrides["tracker_expiry_seconds"] = args.tracker_expiry
    if args.shutdown_timeout is not None:
        overrides["shutdown_timeout_seconds"] = args.shutdown_timeout
    if args.log_level is not None:
        overrides["log_level"] = _LOG_LEVELS[args.log_level]

    env_port = os.environ.get("PORT")
    if env_port:
        overrides["port"] = int(env_port)

    return settings.model_copy(update=overrides) if overrides else settings


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"note-tweet-connector version {__version__}")
        return 0

    settings = resolve_settings(args)

    from note_tweet_connector.api.app import create_app

    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.listen_host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
        timeout_graceful_shutdown=settings.shutdown_timeout_seconds,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
