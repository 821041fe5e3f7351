"""Persistence helpers for SIGA client settings."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

from .paths import config_dir
from .settings import AppSettings, ChatSettings, ServerSettings, VoiceSettings


def _settings_path() -> Path:
    """Primary path for persisted settings."""
    return config_dir() / "siga_settings.json"


def load_settings(path: Path | None = None) -> AppSettings:
    """Load settings from disk (defaults when missing)."""
    path = path or _settings_path()
    if not path.exists():
        return AppSettings()

    raw_text = path.read_text(encoding="utf-8").lstrip("\ufeff")
    data = json.loads(raw_text)

    return AppSettings(
        server=ServerSettings(**data.get("server", {})),
        voice=VoiceSettings(**data.get("voice", {})),
        chat=ChatSettings(**data.get("chat", {})),
    )


def save_settings(settings: AppSettings, path: Path | None = None) -> Path:
    """Persist settings to disk (the API token is never written)."""
    payload = asdict(settings)
    payload.get("server", {})["api_token"] = None

    path = path or _settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return path
