from __future__ import annotations

import asyncio
import json
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer

from .config.session_store import JsonSessionStore
from .config.settings import AppSettings
from .config.store import load_settings, save_settings
from .errors import error_payload
from .runtime.controller import ChatSessionController
from .runtime.roles import resolve_role
from .services.api import SigaAPI
from .services.interfaces import MessageSender
from .services.schemas import UserRole
from .state.session import ChatSession


cli = typer.Typer(name="siga", help="Asistente SIGA en la terminal")
config_cli = typer.Typer(help="Configuración")
cli.add_typer(config_cli, name="config")

QUICK_ACTIONS = {
    "/gastos": "Mostrar gastos del mes",
}


def _build_sender(settings: AppSettings, company_name: str | None) -> MessageSender:
    return SigaAPI(settings, company_name=company_name)


def _build_voice(settings: AppSettings):
    from .audio.speech import PiperSpeechOutput, WhisperSpeechInput

    return WhisperSpeechInput(settings.voice), PiperSpeechOutput(settings.voice)


class _TranscriptPrinter:
    """Echo assistant messages as they are appended."""

    def __init__(self) -> None:
        self._shown = 0
        self._last_error: str | None = None

    def __call__(self, session: ChatSession) -> None:
        transcript = session.transcript
        for message in transcript[self._shown :]:
            if not message.is_user:
                typer.echo(f"SIGA> {message.text}")
        self._shown = len(transcript)
        if session.transient_error and session.transient_error != self._last_error:
            typer.echo(f"[!] {session.transient_error}", err=True)
        self._last_error = session.transient_error


@cli.command()
def chat(
    voice: bool = typer.Option(False, "--voice", help="Activar micrófono y respuesta hablada"),
    role: UserRole = typer.Option(UserRole.OPERADOR, "--role", help="Rol por defecto si la sesión no tiene uno"),
    session_file: Optional[Path] = typer.Option(None, "--session-file", help="Archivo de sesión JSON"),
) -> None:
    """Abrir el panel del asistente en modo texto."""
    settings = load_settings()
    store = JsonSessionStore(session_file) if session_file else JsonSessionStore()
    speech_input = speech_output = None
    if voice:
        speech_input, speech_output = _build_voice(settings)

    loop = asyncio.new_event_loop()
    sender = _build_sender(settings, store.get_company_name())
    controller = ChatSessionController(
        sender,
        speech_input=speech_input,
        speech_output=speech_output,
        session_store=store,
        fallback_role=role,
        settings=settings.chat,
        loop=loop,
    )
    controller.subscribe(_TranscriptPrinter())
    try:
        controller.initialize_session()
        company = controller.session.company_name or "-"
        typer.echo(f"Empresa: {company} | Rol: {controller.effective_role.value}")
        while True:
            try:
                line = typer.prompt("Tú", default="", show_default=False)
            except (EOFError, typer.Abort):
                break
            command = line.strip()
            if command in {"/salir", "/exit"}:
                break
            if command == "/voz":
                loop.run_until_complete(controller.start_voice_input())
                pending = controller.session.pending_input
                if not pending:
                    continue
                typer.echo(f"Tú (voz)> {pending}")
                task = controller.send_message()
            elif command in QUICK_ACTIONS:
                task = controller.ask(QUICK_ACTIONS[command])
            else:
                controller.update_input(line)
                task = controller.send_message()
            if task is not None:
                loop.run_until_complete(task)
    finally:
        controller.close_session()
        close = getattr(sender, "close", None)
        if close is not None:
            loop.run_until_complete(close())
        loop.close()


@cli.command("role")
def role_command(
    raw: Optional[str] = typer.Argument(None, help="Rol guardado en la sesión"),
    fallback: UserRole = typer.Option(UserRole.OPERADOR, "--fallback"),
) -> None:
    """Resolver el rol efectivo del usuario."""
    typer.echo(resolve_role(raw, fallback).value)


@config_cli.command("show")
def config_show() -> None:
    settings = load_settings()
    payload = asdict(settings)
    payload["server"]["api_token"] = "***" if settings.server.api_token else None
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


@config_cli.command("init")
def config_init(
    base_url: Optional[str] = typer.Option(None, "--base-url", help="URL del backend SIGA"),
    path: Optional[Path] = typer.Option(None, "--path", help="Archivo destino"),
) -> None:
    """Escribir un archivo de configuración con los valores por defecto."""
    try:
        settings = load_settings(path)
    except (OSError, ValueError, TypeError) as exc:
        typer.echo(json.dumps(error_payload(exc), ensure_ascii=False))
        raise typer.Exit(code=1)
    if base_url:
        settings.server.base_url = base_url
    written = save_settings(settings, path)
    typer.echo(f"Creado: {written}")


if __name__ == "__main__":
    cli()
