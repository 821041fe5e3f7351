"""Microphone capture for push-to-talk recognition."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Callable, Protocol

import sounddevice as sd

from ..logger import get_logger


logger = get_logger("audio")


class FrameConsumer(Protocol):
    """Protocol for streaming audio frames."""

    def __call__(self, frame: bytes) -> None: ...


@dataclass(slots=True)
class CaptureConfig:
    """Microphone capture configuration."""

    sample_rate: int = 16_000
    channels: int = 1
    frame_duration_ms: int = 30
    device_name: str | None = None


class MicrophoneCapture:
    """Feeds raw PCM frames from the input device to a consumer."""

    def __init__(self, config: CaptureConfig | None = None) -> None:
        self.config = config or CaptureConfig()
        self._consumer: Callable[[bytes], None] | None = None
        self._stream: sd.RawInputStream | None = None
        self._lock = Lock()
        self._running = False

    def bind(self, consumer: FrameConsumer) -> None:
        """Register the frame consumer."""
        self._consumer = consumer

    @staticmethod
    def has_input_device() -> bool:
        """Return True when at least one input device is present."""
        try:
            devices = sd.query_devices()
        except sd.PortAudioError:
            return False
        return any(int(device.get("max_input_channels", 0)) > 0 for device in devices)

    def start(self) -> None:
        """Start microphone capture."""
        if self._consumer is None:
            raise RuntimeError("No audio consumer registered.")
        with self._lock:
            if self._running:
                return
            frame_size = int(self.config.sample_rate * self.config.frame_duration_ms / 1000)
            self._stream = sd.RawInputStream(
                samplerate=self.config.sample_rate,
                channels=self.config.channels,
                dtype="int16",
                blocksize=frame_size,
                callback=self._on_frame,
                device=self.config.device_name,
            )
            self._stream.start()
            self._running = True
            logger.debug("microphone capture started")

    def stop(self) -> None:
        """Stop microphone capture."""
        with self._lock:
            if not self._running or self._stream is None:
                return
            self._stream.stop()
            self._stream.close()
            self._stream = None
            self._running = False
            logger.debug("microphone capture stopped")

    def _on_frame(self, indata: bytes, frames: int, time, status) -> None:  # type: ignore[override]  # noqa: ANN401
        if status:  # pragma: no cover
            logger.warning("microphone status: %s", status)
        if self._consumer is not None:
            self._consumer(bytes(indata))
