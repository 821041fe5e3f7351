from __future__ import annotations

from pathlib import Path

import pytest

from siga_client.audio.tts import find_voice_files, sanitize_text
from siga_client.audio.vad import VoiceActivityDetector


def test_vad_frames_padded_or_trimmed_to_valid_length() -> None:
    # 16 kHz: 10/20/30 ms frames are 160/320/480 samples.
    short = bytes(300 * 2)
    long = bytes(500 * 2)
    assert len(VoiceActivityDetector._normalize_frame(short, 16_000)) == 320 * 2
    assert len(VoiceActivityDetector._normalize_frame(long, 16_000)) == 480 * 2
    assert VoiceActivityDetector._normalize_frame(short, 44_100) == short


def test_sanitize_text_drops_markdown() -> None:
    assert sanitize_text("**Ventas**  de `hoy`: #15") == "Ventas de hoy : 15"


def test_find_voice_files(tmp_path: Path) -> None:
    voice_dir = tmp_path / "es_ES-davefx-medium"
    voice_dir.mkdir()
    model = voice_dir / "es_ES-davefx-medium.onnx"
    model.write_bytes(b"")
    config = voice_dir / "es_ES-davefx-medium.onnx.json"
    config.write_text("{}", encoding="utf-8")
    assert find_voice_files(tmp_path) == (model, config)


def test_find_voice_files_missing(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        find_voice_files(tmp_path)
