from __future__ import annotations

import json

import httpx
import pytest

from siga_client.config.settings import AppSettings
from siga_client.services.api import SigaAPI


def _api(handler, **kwargs) -> SigaAPI:
    settings = AppSettings()
    settings.server.api_token = "tok"
    return SigaAPI(settings, transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_send_posts_message_and_returns_reply() -> None:
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": "Ventas del día: 15"})

    api = _api(handler, company_name="Minimarket")
    result = await api.send("ventas de hoy")
    await api.close()

    assert result.is_success
    assert result.reply == "Ventas del día: 15"
    assert seen == {
        "path": "/api/chat",
        "auth": "Bearer tok",
        "body": {"message": "ventas de hoy", "company": "Minimarket"},
    }
    assert api.last_chat_metadata == {"response": "Ventas del día: 15"}


@pytest.mark.asyncio
async def test_http_error_becomes_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"detail": "modelo no disponible"})

    api = _api(handler)
    result = await api.send("hola")
    await api.close()
    assert not result.is_success
    assert "503" in result.error
    assert "modelo no disponible" in result.error


@pytest.mark.asyncio
async def test_timeout_becomes_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    api = _api(handler)
    result = await api.send("hola")
    await api.close()
    assert not result.is_success
    assert "Tiempo de espera" in result.error


@pytest.mark.asyncio
async def test_non_json_and_empty_replies_fail() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.content and b"vacio" in request.content:
            return httpx.Response(200, json={"answer": "  "})
        return httpx.Response(200, text="<html>oops</html>")

    api = _api(handler)
    non_json = await api.send("hola")
    empty = await api.send("vacio")
    await api.close()
    assert "no JSON" in non_json.error
    assert empty.error == "Respuesta vacía del asistente"
