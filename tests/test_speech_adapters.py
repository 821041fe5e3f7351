from __future__ import annotations

import asyncio
from dataclasses import dataclass

import pytest

from siga_client.config.settings import VoiceSettings
from siga_client.errors import RecognitionUnavailable, SpeechUnavailable

try:
    from siga_client.audio.speech import PiperSpeechOutput, WhisperSpeechInput
except OSError:  # sounddevice without the PortAudio shared library
    pytest.skip("PortAudio not available", allow_module_level=True)


SPEECH = b"\x01\x01" * 480
SILENCE = b"\x00\x00" * 480


@dataclass
class _CaptureConfig:
    sample_rate: int = 16_000
    frame_duration_ms: int = 30


class FakeCapture:
    def __init__(self, frames: list[bytes], *, device: bool = True, fail_start: bool = False) -> None:
        self.config = _CaptureConfig()
        self.frames = frames
        self.device = device
        self.fail_start = fail_start
        self.started = 0
        self.stopped = 0
        self._consumer = None

    def has_input_device(self) -> bool:
        return self.device

    def bind(self, consumer) -> None:
        self._consumer = consumer

    def start(self) -> None:
        if self.fail_start:
            raise OSError("device busy")
        self.started += 1
        for frame in self.frames:
            self._consumer(frame)

    def stop(self) -> None:
        self.stopped += 1


class FakeVad:
    def is_speech(self, frame: bytes, sample_rate: int) -> bool:
        return any(frame)


class FakeEngine:
    def __init__(self, text: str) -> None:
        self.text = text
        self.calls: list[bytes] = []

    def transcribe_pcm(self, pcm: bytes) -> str:
        self.calls.append(pcm)
        return self.text


class FakePlayback:
    def __init__(self) -> None:
        self.played: list[bytes] = []
        self.formats: list[tuple[int, int]] = []
        self.stops = 0

    def play(self, pcm: bytes) -> None:
        self.played.append(pcm)

    def reconfigure(self, sample_rate: int, channels: int) -> None:
        self.formats.append((sample_rate, channels))

    def stop(self) -> None:
        self.stops += 1


class FakeTTS:
    def __init__(self, chunks: list[tuple[bytes, int, int]]) -> None:
        self.chunks = chunks
        self.texts: list[str] = []

    def synthesize_stream(self, text: str):
        self.texts.append(text)
        yield from self.chunks


def _input(capture: FakeCapture, **overrides) -> WhisperSpeechInput:
    settings = VoiceSettings(trailing_silence_ms=90, max_listen_seconds=0.5, **overrides)
    return WhisperSpeechInput(settings, capture=capture, vad=FakeVad())


@pytest.mark.asyncio
async def test_recording_stops_after_trailing_silence() -> None:
    frames = [SILENCE, SPEECH, SPEECH, SILENCE, SILENCE, SILENCE, SPEECH, SPEECH]
    capture = FakeCapture(frames)
    speech_input = _input(capture)

    pcm = await speech_input._record()
    assert pcm == SPEECH + SPEECH + SILENCE * 3
    assert capture.stopped == 1


@pytest.mark.asyncio
async def test_recording_stops_at_time_limit() -> None:
    capture = FakeCapture([SPEECH, SPEECH])
    speech_input = _input(capture, max_listen_seconds=0.05)
    pcm = await speech_input._record()
    assert pcm == SPEECH + SPEECH
    assert capture.stopped == 1


@pytest.mark.asyncio
async def test_recognize_transcribes_recorded_speech() -> None:
    capture = FakeCapture([SPEECH, SILENCE, SILENCE, SILENCE])
    speech_input = _input(capture)
    engine = FakeEngine("  cierre de caja ")
    speech_input._engine = engine  # type: ignore[assignment]

    assert await speech_input.recognize() == "cierre de caja"
    assert engine.calls == [SPEECH + SILENCE * 3]


@pytest.mark.asyncio
async def test_silent_recording_returns_empty_text() -> None:
    capture = FakeCapture([SILENCE, SILENCE])
    speech_input = _input(capture, max_listen_seconds=0.05)
    engine = FakeEngine("no debería usarse")
    speech_input._engine = engine  # type: ignore[assignment]

    assert await speech_input.recognize() == ""
    assert engine.calls == []


@pytest.mark.asyncio
async def test_missing_device_is_unavailable() -> None:
    capture = FakeCapture([], device=False)
    with pytest.raises(RecognitionUnavailable):
        await _input(capture).recognize()
    assert capture.started == 0


@pytest.mark.asyncio
async def test_capture_start_failure_is_unavailable() -> None:
    capture = FakeCapture([], fail_start=True)
    with pytest.raises(RecognitionUnavailable):
        await _input(capture).recognize()


@pytest.mark.asyncio
async def test_speak_plays_synthesized_chunks() -> None:
    playback = FakePlayback()
    output = PiperSpeechOutput(VoiceSettings(), playback=playback)  # type: ignore[arg-type]
    tts = FakeTTS([(b"\x00\x00" * 10, 1000, 1), (b"\x00\x00" * 10, 1000, 1)])
    output._tts = tts  # type: ignore[assignment]

    await output.speak("**Ventas** de hoy")
    assert tts.texts == ["Ventas de hoy"]
    assert len(playback.played) == 2
    assert playback.formats == [(1000, 1), (1000, 1)]


@pytest.mark.asyncio
async def test_blank_text_is_not_spoken() -> None:
    playback = FakePlayback()
    output = PiperSpeechOutput(VoiceSettings(), playback=playback)  # type: ignore[arg-type]
    await output.speak(" ** ")
    assert playback.played == []
    assert playback.stops == 0


@pytest.mark.asyncio
async def test_stop_cancels_current_speech() -> None:
    playback = FakePlayback()
    output = PiperSpeechOutput(VoiceSettings(), playback=playback)  # type: ignore[arg-type]
    # 20000 bytes at 1 kHz mono int16 is ten seconds of audio.
    output._tts = FakeTTS([(b"\x00\x00" * 10_000, 1000, 1)])  # type: ignore[assignment]

    task = asyncio.create_task(output.speak("un mensaje largo"))
    for _ in range(200):
        if playback.played:
            break
        await asyncio.sleep(0.01)
    assert playback.played

    stops_before = playback.stops
    output.stop()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert task.cancelled()
    assert playback.stops > stops_before


@pytest.mark.asyncio
async def test_missing_voice_model_raises_speech_unavailable() -> None:
    output = PiperSpeechOutput(VoiceSettings(tts_voice="voz-inexistente"), playback=FakePlayback())  # type: ignore[arg-type]
    with pytest.raises(SpeechUnavailable):
        await output.speak("hola")
