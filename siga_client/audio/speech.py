"""SpeechInput and SpeechOutput adapters built on the local audio stack."""

from __future__ import annotations

import asyncio
import contextlib
import threading
from typing import Optional

from ..config.paths import models_dir
from ..config.settings import VoiceSettings
from ..errors import RecognitionUnavailable, SpeechUnavailable
from ..logger import get_logger
from .capture import CaptureConfig, MicrophoneCapture
from .playback import PlaybackConfig, SpeechPlayback
from .transcriber import FasterWhisperEngine, WhisperConfig
from .tts import PiperConfig, PiperTTS, find_voice_files, sanitize_text
from .vad import VADConfig, VoiceActivityDetector


logger = get_logger("audio")

_BYTES_PER_SAMPLE = 2  # pcm_s16le


class PiperSpeechOutput:
    """Synthesizes replies with Piper and plays them through sounddevice."""

    def __init__(self, settings: VoiceSettings, *, playback: Optional[SpeechPlayback] = None) -> None:
        self.settings = settings
        self.playback = playback or SpeechPlayback(PlaybackConfig(device_name=settings.output_device))
        self._tts: Optional[PiperTTS] = None
        self._tts_lock = threading.Lock()
        self._current: Optional[asyncio.Task[None]] = None

    async def speak(self, text: str) -> None:
        """Render text as audio; returns once playback is expected to end."""
        text = sanitize_text(text)
        if not text:
            return
        self.stop()
        self._current = asyncio.current_task()
        try:
            duration = await self._synthesize_and_play(text)
            if duration > 0:
                await asyncio.sleep(duration)
        except asyncio.CancelledError:
            self.playback.stop()
            raise
        finally:
            if self._current is asyncio.current_task():
                self._current = None

    def stop(self) -> None:
        """Stop playback immediately."""
        current = self._current
        self._current = None
        try:
            running = asyncio.current_task()
        except RuntimeError:
            running = None
        if current is not None and current is not running and not current.done():
            current.cancel()
        self.playback.stop()

    async def _synthesize_and_play(self, text: str) -> float:
        try:
            tts = self._ensure_tts()
        except FileNotFoundError as exc:
            raise SpeechUnavailable(str(exc)) from exc

        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[object] = asyncio.Queue()

        def producer() -> None:
            try:
                for chunk in tts.synthesize_stream(text):
                    loop.call_soon_threadsafe(queue.put_nowait, chunk)
            except Exception as exc:  # pragma: no cover
                loop.call_soon_threadsafe(queue.put_nowait, exc)
            finally:
                loop.call_soon_threadsafe(queue.put_nowait, None)

        producer_future = loop.run_in_executor(None, producer)
        duration = 0.0
        try:
            while True:
                item = await queue.get()
                if item is None:
                    break
                if isinstance(item, Exception):
                    raise item
                pcm_bytes, rate, channels = item  # type: ignore[misc]
                if not pcm_bytes:
                    continue
                self.playback.reconfigure(rate, channels)
                self.playback.play(pcm_bytes)
                duration += len(pcm_bytes) / (rate * max(1, channels) * _BYTES_PER_SAMPLE)
        finally:
            with contextlib.suppress(Exception):
                await producer_future
        return duration

    def _ensure_tts(self) -> PiperTTS:
        """Load the Piper voice if missing."""
        with self._tts_lock:
            if self._tts is not None:
                return self._tts
            model_path, config_path = find_voice_files(models_dir() / "tts" / self.settings.tts_voice)
            self._tts = PiperTTS(
                PiperConfig(
                    model_path=model_path,
                    config_path=config_path,
                    length_scale=max(0.5, min(2.0, self.settings.tts_length_scale)),
                )
            )
            return self._tts


class WhisperSpeechInput:
    """Records one utterance until trailing silence and transcribes it."""

    def __init__(
        self,
        settings: VoiceSettings,
        *,
        capture: Optional[MicrophoneCapture] = None,
        vad: Optional[VoiceActivityDetector] = None,
    ) -> None:
        self.settings = settings
        self.capture = capture or MicrophoneCapture(CaptureConfig(device_name=settings.input_device))
        self.vad = vad or VoiceActivityDetector(VADConfig(aggressiveness=settings.vad_aggressiveness))
        self._engine: Optional[FasterWhisperEngine] = None
        self._engine_lock = threading.Lock()

    async def recognize(self) -> str:
        """Return the recognized utterance or raise RecognitionUnavailable."""
        if not self.capture.has_input_device():
            raise RecognitionUnavailable("no input device")
        pcm = await self._record()
        if not pcm:
            return ""
        loop = asyncio.get_running_loop()
        try:
            engine = await loop.run_in_executor(None, self._ensure_engine)
            text = await loop.run_in_executor(None, engine.transcribe_pcm, pcm)
        except (OSError, RuntimeError, ValueError) as exc:
            logger.warning("transcription failed: %r", exc)
            raise RecognitionUnavailable(str(exc)) from exc
        return text.strip()

    async def _record(self) -> bytes:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[bytes] = asyncio.Queue()
        self.capture.bind(lambda frame: loop.call_soon_threadsafe(queue.put_nowait, frame))
        config = self.capture.config
        silence_limit = max(1, self.settings.trailing_silence_ms // config.frame_duration_ms)
        deadline = loop.time() + self.settings.max_listen_seconds

        frames: list[bytes] = []
        heard_speech = False
        silent_frames = 0
        try:
            self.capture.start()
        except Exception as exc:
            raise RecognitionUnavailable(f"microphone unavailable: {exc}") from exc
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                try:
                    frame = await asyncio.wait_for(queue.get(), timeout=remaining)
                except asyncio.TimeoutError:
                    break
                if self.vad.is_speech(frame, config.sample_rate):
                    heard_speech = True
                    silent_frames = 0
                elif heard_speech:
                    silent_frames += 1
                if heard_speech:
                    frames.append(frame)
                    if silent_frames >= silence_limit:
                        break
        finally:
            self.capture.stop()
        return b"".join(frames)

    def _ensure_engine(self) -> FasterWhisperEngine:
        with self._engine_lock:
            if self._engine is None:
                local = models_dir() / "asr" / self.settings.asr_model
                model = str(local) if local.exists() else self.settings.asr_model.replace("faster-whisper-", "")
                self._engine = FasterWhisperEngine(
                    WhisperConfig(
                        model=model,
                        language=self.settings.asr_language,
                        device=self.settings.asr_device,
                        compute_type=self.settings.asr_compute_type,
                    )
                )
            return self._engine
