"""Exceptions raised by the SIGA assistant client."""

from __future__ import annotations

from typing import Any, Dict


class SigaClientError(Exception):
    """Base class for client-side failures."""

    code = "client_error"


class RecognitionUnavailable(SigaClientError):
    """Speech recognition cannot run on this device."""

    code = "recognition_unavailable"


class SpeechUnavailable(SigaClientError):
    """Speech synthesis assets or devices are missing."""

    code = "speech_unavailable"


def error_payload(exc: BaseException, *, session_id: str | None = None) -> Dict[str, Any]:
    code = getattr(exc, "code", "client_error")
    payload: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": str(exc) or exc.__class__.__name__,
        }
    }
    if session_id is not None:
        payload["error"]["session_id"] = session_id
    return payload
