"""Data schemas shared by the assistant panel and its collaborators."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from enum import Enum


class UserRole(str, Enum):
    """Roles known to the SIGA point of sale."""

    ADMINISTRADOR = "ADMINISTRADOR"
    OPERADOR = "OPERADOR"
    CAJERO = "CAJERO"


_clock_lock = threading.Lock()
_last_timestamp = 0


def _now_ms() -> int:
    """Wall clock in milliseconds, never lower than a previous reading."""
    global _last_timestamp
    with _clock_lock:
        current = max(int(time.time() * 1000), _last_timestamp)
        _last_timestamp = current
        return current


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """One line of the assistant transcript."""

    text: str
    is_user: bool
    timestamp: int = field(default_factory=_now_ms)

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            raise ValueError("ChatMessage text must not be blank")


@dataclass(frozen=True, slots=True)
class SendResult:
    """Outcome of a MessageSender call: a reply or a failure reason."""

    reply: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, reply: str) -> "SendResult":
        return cls(reply=reply)

    @classmethod
    def fail(cls, reason: str) -> "SendResult":
        return cls(error=reason)

    @property
    def is_success(self) -> bool:
        return self.error is None and self.reply is not None
