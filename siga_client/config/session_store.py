"""Read-only access to the persisted login session."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..logger import get_logger
from .paths import config_dir
from .runtime import get_runtime_settings


logger = get_logger("session")


def _session_path() -> Path:
    override = get_runtime_settings().session_file
    return Path(override) if override else config_dir() / "session.json"


class JsonSessionStore:
    """Session file written by the login screen (role and company)."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or _session_path()

    def get_role(self) -> str | None:
        return self._read_str("user_role")

    def get_company_name(self) -> str | None:
        return self._read_str("company_name")

    def _read_str(self, key: str) -> str | None:
        value = self._load().get(key)
        if value is None:
            return None
        return str(value)

    def _load(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8").lstrip("\ufeff"))
        except (OSError, ValueError) as exc:
            logger.warning("session file unreadable: %s (%s)", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}
