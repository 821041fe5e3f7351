"""Drives the embedded assistant panel: transcript, sends and voice flags."""

from __future__ import annotations

import asyncio
import uuid
from typing import Optional

from ..config.settings import ChatSettings
from ..errors import RecognitionUnavailable
from ..logger import get_logger, set_session_id
from ..services.interfaces import MessageSender, SessionStore, SpeechInput, SpeechOutput
from ..services.schemas import ChatMessage, SendResult, UserRole
from ..state.session import ChatSession, SessionObserver
from .roles import resolve_role


logger = get_logger("chat")


class ChatSessionController:
    """Owns one ChatSession and mediates between the panel and its collaborators.

    All public methods run on the event loop thread. Suspension only happens
    inside the MessageSender, SpeechInput and SpeechOutput calls.
    """

    def __init__(
        self,
        sender: MessageSender,
        *,
        speech_input: Optional[SpeechInput] = None,
        speech_output: Optional[SpeechOutput] = None,
        session_store: Optional[SessionStore] = None,
        fallback_role: UserRole = UserRole.OPERADOR,
        settings: Optional[ChatSettings] = None,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.sender = sender
        self.speech_input = speech_input
        self.speech_output = speech_output
        self.session_store = session_store
        self.fallback_role = fallback_role
        self.settings = settings or ChatSettings()
        self.loop = loop
        self.session = ChatSession()

        self._generation = 0
        self._identity_loaded = False
        self._send_task: Optional[asyncio.Task[SendResult]] = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def subscribe(self, observer: SessionObserver):
        """Register a callback receiving the session after every change."""
        return self.session.subscribe(observer)

    @property
    def transcript(self) -> tuple[ChatMessage, ...]:
        return self.session.transcript

    @property
    def effective_role(self) -> UserRole:
        return self.session.role or self.fallback_role

    def initialize_session(self) -> None:
        """Open the panel: load the identity once and greet on an empty transcript."""
        set_session_id(self.session.session_id)
        changed = False
        if not self._identity_loaded:
            self._load_identity()
            self._identity_loaded = True
            changed = True
        if not self.session.transcript:
            self.session.append(ChatMessage(text=self.settings.greeting, is_user=False))
            logger.info("session opened", extra={"session_id": self.session.session_id})
            changed = True
        if changed:
            self.session.notify()

    def update_input(self, text: str) -> None:
        """Manual edit of the input box; disables spoken replies."""
        self.session.pending_input = text
        self.session.voice_output_enabled = False
        self.session.notify()

    def accept_voice_input(self, result: str | RecognitionUnavailable) -> None:
        """Apply the outcome of a speech recognition attempt."""
        if isinstance(result, RecognitionUnavailable):
            self.session.transient_error = self.settings.recognition_unavailable
            logger.info("voice recognition unavailable: %s", result, extra={"session_id": self.session.session_id})
            self.session.notify()
            return
        if not result:
            return
        self.session.pending_input = result
        self.session.voice_output_enabled = True
        self.session.transient_error = None
        self.session.notify()

    async def start_voice_input(self) -> None:
        """Ask the SpeechInput for one utterance and feed it to the input box."""
        if self.speech_input is None:
            self.accept_voice_input(RecognitionUnavailable("no speech input configured"))
            return
        try:
            text = await self.speech_input.recognize()
        except RecognitionUnavailable as exc:
            self.accept_voice_input(exc)
            return
        self.accept_voice_input(text.strip())

    def set_voice_input_enabled(self, enabled: bool) -> None:
        self.session.voice_input_enabled = enabled
        self.session.notify()

    def set_voice_output_enabled(self, enabled: bool) -> None:
        self.session.voice_output_enabled = enabled
        self.session.notify()

    def send_message(self) -> Optional[asyncio.Task[SendResult]]:
        """Start a send cycle for the pending input.

        Returns the task resolving the cycle, or None when the input is blank
        or another send is still in flight.
        """
        session = self.session
        if not session.pending_input.strip() or session.send_in_flight:
            return None

        loop = self._resolve_loop()
        text = session.pending_input.strip()
        session.pending_input = ""
        session.last_error = None
        session.transient_error = None
        session.append(ChatMessage(text=text, is_user=True))
        session.send_in_flight = True
        speak_reply = session.voice_output_enabled
        session.notify()

        self._send_task = loop.create_task(self._dispatch(text, self._generation, speak_reply))
        return self._send_task

    def ask(self, text: str) -> Optional[asyncio.Task[SendResult]]:
        """Quick action from a dashboard tile: fill the input and send it."""
        self.session.pending_input = text
        return self.send_message()

    async def replay(self, message: ChatMessage) -> None:
        """Speak an assistant message again and keep spoken replies on."""
        self.set_voice_output_enabled(True)
        await self._speak(message.text)

    def close_session(self) -> None:
        """Close the panel: silence speech and drop any pending resolution."""
        if self.speech_output is not None:
            try:
                self.speech_output.stop()
            except Exception:  # pragma: no cover - audio backend
                logger.exception("speech stop failed", extra={"session_id": self.session.session_id})
        self._generation += 1
        self._identity_loaded = False
        self._send_task = None
        self.session.send_in_flight = False
        self.session.notify()
        logger.info("session closed", extra={"session_id": self.session.session_id})

    def reset(self) -> None:
        """Tear the panel down completely so the next open starts fresh."""
        self.close_session()
        session = self.session
        session.clear_transcript()
        session.pending_input = ""
        session.last_error = None
        session.transient_error = None
        session.voice_output_enabled = False
        session.voice_input_enabled = False
        session.role = None
        session.company_name = None
        session.session_id = uuid.uuid4().hex
        session.notify()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    async def _dispatch(self, text: str, generation: int, speak_reply: bool) -> SendResult:
        try:
            result = await self.sender.send(text)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.exception("message sender raised", extra={"session_id": self.session.session_id})
            result = SendResult.fail(str(exc) or exc.__class__.__name__)

        if generation != self._generation:
            logger.info("discarding reply of a closed session", extra={"session_id": self.session.session_id})
            return result

        session = self.session
        session.send_in_flight = False
        if result.is_success and not (result.reply or "").strip():
            logger.warning("sender returned a blank reply", extra={"session_id": session.session_id})
            result = SendResult.fail("")
        if result.is_success:
            reply = result.reply or ""
            session.append(ChatMessage(text=reply, is_user=False))
            session.notify()
            if speak_reply:
                await self._speak(reply)
        else:
            reason = (result.error or "").strip()
            session.last_error = reason or self.settings.default_error
            session.append(ChatMessage(text=self._narrate_failure(session.last_error), is_user=False))
            logger.warning("send failed: %s", session.last_error, extra={"session_id": session.session_id})
            session.notify()
        return result

    def _narrate_failure(self, reason: str) -> str:
        try:
            text = self.settings.error_template.format(reason=reason)
        except (KeyError, IndexError, ValueError):
            logger.warning("invalid error template: %r", self.settings.error_template)
            text = ""
        if not text.strip():
            text = ChatSettings().error_template.format(reason=reason)
        return text

    async def _speak(self, text: str) -> None:
        if self.speech_output is None:
            return
        try:
            await self.speech_output.speak(text)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("speech output failed", extra={"session_id": self.session.session_id})

    def _load_identity(self) -> None:
        raw_role: str | None = None
        company: str | None = None
        if self.session_store is not None:
            raw_role = self.session_store.get_role()
            company = self.session_store.get_company_name()
        self.session.role = resolve_role(raw_role, self.fallback_role)
        self.session.company_name = company

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            if self.loop is None:
                raise RuntimeError("send_message requires a running event loop") from None
            return self.loop
