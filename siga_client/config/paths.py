"""Filesystem helpers for the SIGA client."""

from __future__ import annotations

from pathlib import Path

from .runtime import get_runtime_settings


def config_dir() -> Path:
    """Directory storing local configuration and the session file."""
    override = get_runtime_settings().config_dir
    root = Path(override) if override else Path.home() / ".siga"
    root.mkdir(parents=True, exist_ok=True)
    return root


def log_dir() -> Path:
    """Directory receiving the JSON log files."""
    override = get_runtime_settings().log_dir
    root = Path(override) if override else config_dir() / "logs"
    root.mkdir(parents=True, exist_ok=True)
    return root


def models_dir() -> Path:
    """Directory storing audio models."""
    root = config_dir() / "models"
    root.mkdir(parents=True, exist_ok=True)
    return root
