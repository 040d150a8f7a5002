import asyncio

import httpx
import pytest
from fastapi import HTTPException

from simulai.core.avatar import HeyGenClient


def _heygen(monkeypatch, handler):
    real_client = httpx.AsyncClient
    monkeypatch.setattr(
        "simulai.core.avatar.httpx.AsyncClient",
        lambda *args, **kwargs: real_client(transport=httpx.MockTransport(handler)),
    )
    return HeyGenClient("hg-secret")


def test_streaming_token(monkeypatch):
    def handler(request):
        assert request.headers["x-api-key"] == "hg-secret"
        assert request.url.path.endswith("/v1/streaming.create_token")
        return httpx.Response(200, json={"data": {"token": "stream-123"}})

    assert asyncio.run(_heygen(monkeypatch, handler).create_streaming_token()) == "stream-123"


@pytest.mark.parametrize("response", [
    httpx.Response(200, json={"data": None}),
    httpx.Response(200, json=["unexpected"]),
    httpx.Response(200, text="<html>maintenance</html>"),
    httpx.Response(500, json={"error": "boom"}),
])
def test_bad_token_responses_are_upstream_errors(monkeypatch, response):
    client = _heygen(monkeypatch, lambda request: response)
    with pytest.raises(HTTPException) as exc:
        asyncio.run(client.create_streaming_token())
    assert exc.value.status_code == 503
    assert exc.value.detail == "HeyGen Error: Failed to retrieve access token"


def test_missing_key():
    with pytest.raises(HTTPException) as exc:
        HeyGenClient(None)
    assert exc.value.status_code == 503
