"""Collaborator contracts consumed by the chat session controller."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .schemas import SendResult


@runtime_checkable
class MessageSender(Protocol):
    """Sends a user request to the assistant backend."""

    async def send(self, text: str) -> SendResult: ...


@runtime_checkable
class SpeechInput(Protocol):
    """Recognizes one utterance; raises RecognitionUnavailable when it cannot."""

    async def recognize(self) -> str: ...


@runtime_checkable
class SpeechOutput(Protocol):
    """Renders text as audio."""

    async def speak(self, text: str) -> None: ...

    def stop(self) -> None: ...


@runtime_checkable
class SessionStore(Protocol):
    """Read-only persisted identity of the logged-in user."""

    def get_role(self) -> str | None: ...

    def get_company_name(self) -> str | None: ...
