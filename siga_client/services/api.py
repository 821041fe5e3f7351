"""HTTP client used to talk to the SIGA assistant backend."""

from __future__ import annotations

from typing import Any

import httpx

from ..config.settings import AppSettings
from ..logger import get_logger
from .schemas import SendResult


logger = get_logger("api")

_REPLY_KEYS = ("response", "answer", "reply")


class SigaAPI:
    """Async MessageSender backed by the SIGA chat endpoint."""

    def __init__(
        self,
        settings: AppSettings,
        *,
        company_name: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self.company_name = company_name
        server = settings.server
        timeout = httpx.Timeout(
            connect=15.0,
            read=server.timeout_seconds,
            write=15.0,
            pool=None,
        )
        headers: dict[str, str] = {}
        if server.api_token:
            headers["Authorization"] = f"Bearer {server.api_token}"
        self._client = httpx.AsyncClient(
            base_url=server.base_url,
            verify=server.verify_ssl,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )
        self._last_meta: dict[str, Any] = {}

    async def send(self, text: str) -> SendResult:
        """Send a chat message and return the assistant reply or a failure."""
        payload: dict[str, Any] = {"message": text}
        if self.company_name:
            payload["company"] = self.company_name

        try:
            response = await self._client.post(self.settings.server.chat_path, json=payload)
        except httpx.ReadTimeout:
            logger.warning("chat read timeout")
            return SendResult.fail("Tiempo de espera agotado al leer la respuesta")
        except httpx.TimeoutException:
            logger.warning("chat connect timeout")
            return SendResult.fail("Tiempo de espera agotado al conectar con el servidor")
        except httpx.HTTPError as exc:
            logger.warning("chat transport error: %r", exc)
            return SendResult.fail(f"No se pudo conectar con el servidor: {exc}")

        if response.status_code >= 400:
            detail = self._error_detail(response)
            logger.warning("chat http error %s: %s", response.status_code, detail)
            return SendResult.fail(f"HTTP {response.status_code}: {detail}")

        try:
            data = response.json()
        except ValueError:
            snippet = response.text[:200]
            return SendResult.fail(f"Respuesta no JSON del servidor: {snippet}")

        self._last_meta = data if isinstance(data, dict) else {}
        answer = self._extract_reply(data)
        if not answer:
            return SendResult.fail("Respuesta vacía del asistente")
        return SendResult.ok(answer)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    @property
    def last_chat_metadata(self) -> dict[str, Any]:
        """Return the body of the last successful chat response."""
        return self._last_meta

    @staticmethod
    def _extract_reply(data: Any) -> str:
        if isinstance(data, str):
            return data.strip()
        if not isinstance(data, dict):
            return ""
        for key in _REPLY_KEYS:
            raw = data.get(key)
            if raw is None:
                continue
            return (raw if isinstance(raw, str) else str(raw)).strip()
        return ""

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200] or response.reason_phrase
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            for key in ("detail", "message", "error"):
                if body.get(key):
                    return str(body[key])
        return response.reason_phrase
