"""Testes para infra/http.py."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from note_tweet_connector.config.settings import Settings
from note_tweet_connector.infra.http import (
    HttpClient,
    HttpClientConfig,
    HttpError,
    _calculate_backoff,
    _is_retryable_status,
    _sanitize_url,
    create_http_client,
)


class TestHttpClientConfig:
    def test_default_values(self) -> None:
        """Por padrão nenhuma postagem é repetida."""
        config = HttpClientConfig()
        assert config.timeout_seconds == 30.0
        assert config.max_retries == 0
        assert config.verify_ssl is True


class TestHelpers:
    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [(429, True), (500, True), (503, True), (400, False), (401, False), (404, False)],
    )
    def test_is_retryable_status(self, status_code: int, expected: bool) -> None:
        assert _is_retryable_status(status_code) is expected

    def test_backoff_is_capped(self) -> None:
        assert _calculate_backoff(0, 2.0, 30.0) == 2.0
        assert _calculate_backoff(2, 2.0, 30.0) == 8.0
        assert _calculate_backoff(10, 2.0, 30.0) == 30.0

    def test_sanitize_ifttt_key(self) -> None:
        url = "https://maker.ifttt.com/trigger/ev/with/key/SECRETKEY"
        assert _sanitize_url(url) == "https://maker.ifttt.com/trigger/ev/with/key/***"

    def test_sanitize_query_tokens(self) -> None:
        assert _sanitize_url("https://a.example/x?i=tok&b=1") == "https://a.example/x?i=***&b=1"
        assert (
            _sanitize_url("https://a.example/x?multi=1&access_token=abc")
            == "https://a.example/x?multi=1&access_token=***"
        )

    def test_sanitize_leaves_plain_url(self) -> None:
        assert _sanitize_url("https://misskey.example/api/notes/create") == (
            "https://misskey.example/api/notes/create"
        )


class TestHttpClient:
    @pytest.mark.asyncio
    async def test_success_returns_response(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": True}))
        async with HttpClient(transport=transport) as client:
            response = await client.get("https://example.test/")
        assert response.json() == {"ok": True}

    @pytest.mark.asyncio
    async def test_non_retryable_status_raises_immediately(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(400)

        client = HttpClient(HttpClientConfig(max_retries=3), transport=httpx.MockTransport(handler))
        with pytest.raises(HttpError) as exc_info:
            await client.post("https://example.test/", json={})
        assert exc_info.value.status_code == 400
        assert exc_info.value.is_retryable is False
        assert len(calls) == 1
        await client.close()

    @pytest.mark.asyncio
    async def test_no_retry_by_default(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        client = HttpClient(transport=httpx.MockTransport(handler))
        with pytest.raises(HttpError) as exc_info:
            await client.post("https://example.test/", json={})
        assert exc_info.value.is_retryable is True
        assert len(calls) == 1
        await client.close()

    @pytest.mark.asyncio
    async def test_retries_when_configured(self) -> None:
        responses = iter([httpx.Response(503), httpx.Response(200)])
        client = HttpClient(
            HttpClientConfig(max_retries=2, backoff_base_seconds=0.0),
            transport=httpx.MockTransport(lambda request: next(responses)),
        )
        with patch("note_tweet_connector.infra.http.asyncio.sleep", new=AsyncMock()) as sleep:
            response = await client.get("https://example.test/")
        assert response.status_code == 200
        sleep.assert_awaited_once()
        await client.close()

    @pytest.mark.asyncio
    async def test_transport_error_becomes_http_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = HttpClient(transport=httpx.MockTransport(handler))
        with pytest.raises(HttpError) as exc_info:
            await client.get("https://example.test/")
        assert exc_info.value.is_retryable is True
        assert exc_info.value.status_code is None
        await client.close()

    @pytest.mark.asyncio
    async def test_timeout_becomes_http_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        client = HttpClient(transport=httpx.MockTransport(handler))
        with pytest.raises(HttpError, match="Timeout"):
            await client.get("https://example.test/")
        await client.close()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self) -> None:
        client = HttpClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        await client.get("https://example.test/")
        await client.close()
        await client.close()


class TestCreateHttpClient:
    def test_uses_settings(self) -> None:
        settings = Settings(_env_file=None, http_timeout_seconds=5.0, http_max_retries=1)
        client = create_http_client(settings)
        assert client._config.timeout_seconds == 5.0
        assert client._config.max_retries == 1
        assert client._config.default_headers["User-Agent"].startswith("note-tweet-connector/")
