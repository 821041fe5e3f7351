"""Local configuration models for the SIGA client."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class ServerSettings:
    """Connection settings for the SIGA backend."""

    base_url: str = "http://127.0.0.1:8080"
    chat_path: str = "/api/chat"
    api_token: str | None = None
    verify_ssl: bool = True
    timeout_seconds: float = 60.0


@dataclass(slots=True)
class VoiceSettings:
    """Audio capture, recognition and synthesis settings."""

    input_device: str | None = None
    output_device: str | None = None
    asr_model: str = "faster-whisper-small"
    asr_language: str = "es"
    asr_device: str = "cpu"
    asr_compute_type: str = "int8"
    tts_voice: str = "es_ES-davefx-medium"
    tts_length_scale: float = 1.0
    vad_aggressiveness: int = 2
    max_listen_seconds: float = 8.0
    trailing_silence_ms: int = 900


@dataclass(slots=True)
class ChatSettings:
    """Fixed texts shown by the assistant panel."""

    greeting: str = "Hola, soy SIGA, tu asistente. ¿En qué puedo ayudarte hoy?"
    error_template: str = "Lo siento, hubo un error al procesar tu mensaje. ({reason})"
    default_error: str = "Error al comunicarse con el asistente"
    recognition_unavailable: str = "El reconocimiento de voz no está disponible en este dispositivo"


@dataclass(slots=True)
class AppSettings:
    """Full set of settings for the client."""

    server: ServerSettings = field(default_factory=ServerSettings)
    voice: VoiceSettings = field(default_factory=VoiceSettings)
    chat: ChatSettings = field(default_factory=ChatSettings)
