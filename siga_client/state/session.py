"""State owned by one assistant panel."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Callable

from ..logger import get_logger
from ..services.schemas import ChatMessage, UserRole


logger = get_logger("session")

SessionObserver = Callable[["ChatSession"], None]


@dataclass(slots=True)
class ChatSession:
    """Transcript, send lifecycle and voice flags of the assistant panel."""

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    pending_input: str = ""
    send_in_flight: bool = False
    last_error: str | None = None
    transient_error: str | None = None
    voice_output_enabled: bool = False
    voice_input_enabled: bool = False
    role: UserRole | None = None
    company_name: str | None = None
    _messages: list[ChatMessage] = field(default_factory=list, repr=False)
    _observers: list[SessionObserver] = field(default_factory=list, repr=False)

    @property
    def transcript(self) -> tuple[ChatMessage, ...]:
        """Snapshot of the transcript in display order."""
        return tuple(self._messages)

    def append(self, message: ChatMessage) -> None:
        """Append a message; the transcript never shrinks during a session."""
        self._messages.append(message)

    def clear_transcript(self) -> None:
        self._messages.clear()

    def subscribe(self, observer: SessionObserver) -> Callable[[], None]:
        """Register a change observer and return its unsubscribe callable."""
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def notify(self) -> None:
        for observer in list(self._observers):
            try:
                observer(self)
            except Exception:
                logger.exception("session observer failed", extra={"session_id": self.session_id})
