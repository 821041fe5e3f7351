"""SIGA dashboard assistant client package."""

from __future__ import annotations

from typing import Any

__all__ = ["main"]


def main(*args: Any, **kwargs: Any) -> Any:
    """Run the SIGA CLI (lazy import)."""
    from .cli import cli

    return cli(*args, **kwargs)
